# src/devlink/models/account.py
"""SQLAlchemy models for accounts and their linked OAuth identities."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from devlink.db.session import Base
from devlink.db.time import utcnow

ROLE_DEVELOPER = "developer"
ROLE_CLIENT = "client"
ROLES = (ROLE_DEVELOPER, ROLE_CLIENT)


def _new_id() -> str:
    return uuid.uuid4().hex


class Account(Base):
    """Long-lived identity created on the first successful OAuth sign-in."""

    __tablename__ = "account"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    # Public handle; assigned lazily on the first GitHub login.
    username: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    image: Mapped[str | None] = mapped_column(Text, nullable=True)

    role: Mapped[str] = mapped_column(String(16), nullable=False, default=ROLE_CLIENT)
    approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Bumped whenever role/approval/admin flags change so stale tokens get re-derived.
    auth_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    website: Mapped[str | None] = mapped_column(Text, nullable=True)
    github: Mapped[str | None] = mapped_column(Text, nullable=True)
    twitter: Mapped[str | None] = mapped_column(Text, nullable=True)
    skills: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    email_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Denormalized counters kept in lockstep with their fact tables.
    followers_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    endorsements_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    profile_views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    identities: Mapped[list[LinkedIdentity]] = relationship(
        "LinkedIdentity",
        back_populates="account",
        cascade="all, delete-orphan",
    )

    @property
    def is_developer(self) -> bool:
        return self.role == ROLE_DEVELOPER


class LinkedIdentity(Base):
    """One external provider identity linked to exactly one account."""

    __tablename__ = "linked_identity"
    __table_args__ = (
        UniqueConstraint("provider", "provider_account_id", name="uq_linked_identity_subject"),
        UniqueConstraint("provider", "account_id", name="uq_linked_identity_account"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    provider: Mapped[str] = mapped_column(String(32), nullable=False)
    provider_account_id: Mapped[str] = mapped_column(String(128), nullable=False)
    account_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("account.id", ondelete="CASCADE"),
        nullable=False,
    )
    access_token: Mapped[str | None] = mapped_column(Text, nullable=True)

    account: Mapped[Account] = relationship("Account", back_populates="identities")
