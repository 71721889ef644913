"""Profile view tracking with per-IP de-duplication."""

from __future__ import annotations

from datetime import timedelta

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from devlink.db.time import utcnow
from devlink.models import Account, ProfileView

VIEW_DEDUP_WINDOW = timedelta(hours=1)


def record_profile_view(
    db: Session,
    *,
    user_id: str,
    viewer_id: str | None,
    ip_address: str,
    user_agent: str | None,
) -> bool:
    """Log a view of ``user_id``'s profile and bump its counter.

    Self-views are ignored, and a second view from the same IP inside
    :data:`VIEW_DEDUP_WINDOW` is not counted again.

    Returns:
        True if the view was counted.

    Raises:
        LookupError: If the profile does not exist.
    """
    if viewer_id is not None and viewer_id == user_id:
        return False
    if db.get(Account, user_id) is None:
        raise LookupError("User not found")

    since = utcnow() - VIEW_DEDUP_WINDOW
    recent = db.scalar(
        select(ProfileView.id).where(
            ProfileView.user_id == user_id,
            ProfileView.ip_address == ip_address,
            ProfileView.created_at >= since,
        )
    )
    if recent is not None:
        return False

    db.add(
        ProfileView(
            user_id=user_id,
            viewer_id=viewer_id,
            ip_address=ip_address,
            user_agent=user_agent,
        )
    )
    db.execute(
        update(Account)
        .where(Account.id == user_id)
        .values(profile_views=Account.profile_views + 1)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return True


def recent_viewers(db: Session, user_id: str, limit: int = 10) -> list[ProfileView]:
    """Return the latest signed-in views of ``user_id``'s profile."""
    return list(
        db.scalars(
            select(ProfileView)
            .where(ProfileView.user_id == user_id, ProfileView.viewer_id.is_not(None))
            .order_by(ProfileView.created_at.desc())
            .limit(limit)
        )
    )
