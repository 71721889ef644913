"""Idempotent follow, like and endorsement toggles.

Each toggle flips the existence of a fact row and moves the matching
denormalized counter in the same transaction. A concurrent duplicate request
that loses the insert race on the fact's unique constraint reports the "on"
state without touching the counter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import InstrumentedAttribute, Session

from devlink.models import Account, BlogPost, Endorsement, Follow, Like, Project

logger = logging.getLogger(__name__)


class ToggleError(ValueError):
    """Base class for toggle validation failures."""


class MissingTargetError(ToggleError):
    """Raised when the request names no target."""


class SelfActionError(ToggleError):
    """Raised when an actor targets themselves or their own content."""


class TargetNotFoundError(ToggleError):
    """Raised when the target entity does not exist."""


class InvalidSkillError(ToggleError):
    """Raised when endorsing a skill the target has not declared."""


@dataclass(frozen=True)
class ToggleResult:
    """State of a relationship after a toggle."""

    kind: str
    active: bool
    created: bool = False
    counter: int = 0


@dataclass(frozen=True)
class _Counter:
    """Integer column on one row, moved in lockstep with a fact table."""

    column: InstrumentedAttribute[int]
    key_column: InstrumentedAttribute[Any]
    key: Any

    def increment(self, db: Session) -> None:
        db.execute(
            update(self.column.class_)
            .where(self.key_column == self.key)
            .values({self.column.key: self.column + 1})
            .execution_options(synchronize_session=False)
        )

    def decrement(self, db: Session) -> None:
        # Floor at zero.
        db.execute(
            update(self.column.class_)
            .where(self.key_column == self.key)
            .values({self.column.key: case((self.column > 0, self.column - 1), else_=0)})
            .execution_options(synchronize_session=False)
        )

    def read(self, db: Session) -> int:
        value = db.scalar(select(self.column).where(self.key_column == self.key))
        return int(value or 0)


def _toggle(
    db: Session,
    *,
    kind: str,
    model: type[Any],
    criteria: tuple[Any, ...],
    new_fact: Any,
    counter: _Counter,
) -> ToggleResult:
    existing_id = db.scalar(select(model.id).where(*criteria))
    if existing_id is not None:
        deleted = db.execute(delete(model).where(model.id == existing_id)).rowcount
        if deleted:
            counter.decrement(db)
        db.commit()
        return ToggleResult(kind, active=False, counter=counter.read(db))

    try:
        with db.begin_nested():
            db.add(new_fact)
            db.flush()
    except IntegrityError:
        # A concurrent duplicate already inserted the fact.
        db.commit()
        logger.info("Concurrent %s resolved as already active", kind)
        return ToggleResult(kind, active=True, created=False, counter=counter.read(db))

    counter.increment(db)
    db.commit()
    return ToggleResult(kind, active=True, created=True, counter=counter.read(db))


def toggle_follow(db: Session, actor_id: str, target_id: str | None) -> ToggleResult:
    """Follow ``target_id`` or stop following it."""
    if not target_id:
        raise MissingTargetError("Following ID required")
    if target_id == actor_id:
        raise SelfActionError("Cannot follow yourself")
    if db.get(Account, target_id) is None:
        raise TargetNotFoundError("User not found")

    return _toggle(
        db,
        kind="follow",
        model=Follow,
        criteria=(Follow.follower_id == actor_id, Follow.following_id == target_id),
        new_fact=Follow(follower_id=actor_id, following_id=target_id),
        counter=_Counter(Account.followers_count, Account.id, target_id),
    )


def toggle_like(
    db: Session,
    actor_id: str,
    *,
    project_id: int | None = None,
    post_id: int | None = None,
) -> ToggleResult:
    """Like or unlike exactly one project or blog post."""
    if project_id is None and post_id is None:
        raise MissingTargetError("Project ID or Post ID required")
    if project_id is not None and post_id is not None:
        raise ToggleError("Cannot like both project and post")

    if project_id is not None:
        target = db.get(Project, project_id)
        if target is None:
            raise TargetNotFoundError("Project not found")
        criteria = (Like.user_id == actor_id, Like.project_id == project_id)
        counter = _Counter(Project.likes_count, Project.id, project_id)
    else:
        target = db.get(BlogPost, post_id)
        if target is None:
            raise TargetNotFoundError("Post not found")
        criteria = (Like.user_id == actor_id, Like.post_id == post_id)
        counter = _Counter(BlogPost.likes_count, BlogPost.id, post_id)

    if target.owner_id == actor_id:
        raise SelfActionError("Cannot like your own content")

    return _toggle(
        db,
        kind="like",
        model=Like,
        criteria=criteria,
        new_fact=Like(user_id=actor_id, project_id=project_id, post_id=post_id),
        counter=counter,
    )


def match_declared_skill(account: Account, skill: str) -> str | None:
    """Return the account's spelling of ``skill`` if it was declared."""
    wanted = skill.strip().lower()
    for declared in account.skills or []:
        if declared.strip().lower() == wanted:
            return declared
    return None


def toggle_endorsement(
    db: Session, actor_id: str, target_id: str | None, skill: str | None
) -> ToggleResult:
    """Endorse one of the target's declared skills, or withdraw the endorsement."""
    if not target_id or not skill or not skill.strip():
        raise MissingTargetError("User ID and skill required")
    if target_id == actor_id:
        raise SelfActionError("Cannot endorse yourself")
    target = db.get(Account, target_id)
    if target is None:
        raise TargetNotFoundError("User not found")
    # An existing endorsement is withdrawn even if the skill is no longer declared.
    declared = db.scalar(
        select(Endorsement.skill).where(
            Endorsement.user_id == target_id,
            Endorsement.endorser_id == actor_id,
            func.lower(Endorsement.skill) == skill.strip().lower(),
        )
    )
    if declared is None:
        declared = match_declared_skill(target, skill)
    if declared is None:
        raise InvalidSkillError(f"{skill!r} is not one of this user's skills")

    return _toggle(
        db,
        kind="endorsement",
        model=Endorsement,
        criteria=(
            Endorsement.user_id == target_id,
            Endorsement.endorser_id == actor_id,
            Endorsement.skill == declared,
        ),
        new_fact=Endorsement(user_id=target_id, endorser_id=actor_id, skill=declared),
        counter=_Counter(Account.endorsements_count, Account.id, target_id),
    )


def is_following(db: Session, actor_id: str, target_id: str) -> bool:
    return (
        db.scalar(
            select(Follow.id).where(
                Follow.follower_id == actor_id, Follow.following_id == target_id
            )
        )
        is not None
    )


def endorsement_summary(db: Session, target_id: str) -> dict[str, int]:
    """Return endorsement counts per skill for ``target_id``."""
    rows = db.execute(
        select(Endorsement.skill, func.count(Endorsement.id))
        .where(Endorsement.user_id == target_id)
        .group_by(Endorsement.skill)
    ).all()
    return {skill: int(count) for skill, count in rows}
