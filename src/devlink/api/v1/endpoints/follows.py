# src/devlink/api/v1/endpoints/follows.py
"""Follow toggle endpoints."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from devlink.api.v1.dependencies import (
    CurrentClaimsDep,
    DispatcherDep,
    SessionDep,
    ToggleActorDep,
)
from devlink.api.v1.errors import store_http_error, toggle_http_error
from devlink.core.settings import settings
from devlink.models import Account
from devlink.schemas.toggle import FollowRequest, FollowResponse
from devlink.services.notifications import follow_notification
from devlink.services.toggles import ToggleError, is_following, toggle_follow

router = APIRouter(prefix="/follows", tags=["follows"])


@router.post("/", response_model=FollowResponse)
async def toggle_follow_endpoint(
    payload: FollowRequest,
    db: SessionDep,
    claims: ToggleActorDep,
    dispatcher: DispatcherDep,
    background_tasks: BackgroundTasks,
) -> FollowResponse:
    """Follow the given account, or unfollow it if already following."""
    try:
        result = toggle_follow(db, claims.account_id, payload.following_id)
    except ToggleError as err:
        raise toggle_http_error(err) from err
    except SQLAlchemyError as err:
        raise store_http_error(db, err, "follow") from err

    if result.created:
        actor = db.get(Account, claims.account_id)
        target = db.get(Account, payload.following_id)
        if actor and target and actor.name and target.email_notifications:
            profile_url = f"{settings.frontend_url}/{actor.username or actor.id}"
            background_tasks.add_task(
                dispatcher.dispatch,
                follow_notification(actor.name, target.email, profile_url),
            )

    return FollowResponse(following=result.active)


@router.get("/{user_id}/status", response_model=FollowResponse)
async def get_follow_status(user_id: str, db: SessionDep, claims: CurrentClaimsDep) -> FollowResponse:
    """Return whether the caller follows ``user_id``."""
    if db.get(Account, user_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return FollowResponse(following=is_following(db, claims.account_id, user_id))
