# src/devlink/models/social.py
"""Relationship facts between accounts and content.

The existence of a row is the "on" state; there is no boolean column.
"""

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from devlink.db.session import Base
from devlink.db.time import utcnow


class Follow(Base):
    """Follower -> followed account."""

    __tablename__ = "follow"
    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_follow_pair"),
        Index("ix_follow_following_id", "following_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    follower_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("account.id", ondelete="CASCADE"), nullable=False
    )
    following_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("account.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class Like(Base):
    """Like on exactly one project or blog post."""

    __tablename__ = "likes"
    __table_args__ = (
        UniqueConstraint("user_id", "project_id", name="uq_like_project"),
        UniqueConstraint("user_id", "post_id", name="uq_like_post"),
        CheckConstraint(
            "(project_id IS NULL) <> (post_id IS NULL)",
            name="ck_like_single_target",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("account.id", ondelete="CASCADE"), nullable=False
    )
    project_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("project.id", ondelete="CASCADE"), nullable=True
    )
    post_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("blog_post.id", ondelete="CASCADE"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class Endorsement(Base):
    """Endorsement of one declared skill of an account."""

    __tablename__ = "endorsement"
    __table_args__ = (
        UniqueConstraint("user_id", "endorser_id", "skill", name="uq_endorsement_skill"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Endorsed account.
    user_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("account.id", ondelete="CASCADE"), nullable=False
    )
    endorser_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("account.id", ondelete="CASCADE"), nullable=False
    )
    skill: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class ProfileView(Base):
    """Logged visit of a public profile, used to de-duplicate view counting."""

    __tablename__ = "profile_view"
    __table_args__ = (Index("ix_profile_view_user_ip", "user_id", "ip_address"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("account.id", ondelete="CASCADE"), nullable=False
    )
    viewer_id: Mapped[str | None] = mapped_column(
        String(32), ForeignKey("account.id", ondelete="SET NULL"), nullable=True
    )
    ip_address: Mapped[str] = mapped_column(String(64), nullable=False)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
