# src/devlink/api/v1/endpoints/likes.py
"""Like toggle endpoints for projects and blog posts."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from devlink.api.v1.dependencies import DispatcherDep, SessionDep, ToggleActorDep
from devlink.api.v1.errors import store_http_error, toggle_http_error
from devlink.core.settings import settings
from devlink.models import Account, BlogPost, Project
from devlink.schemas.toggle import LikeRequest, LikeResponse
from devlink.services.notifications import Notification, like_notification
from devlink.services.toggles import ToggleError, toggle_like

router = APIRouter(prefix="/likes", tags=["likes"])


def _build_notification(db: Session, actor_id: str, payload: LikeRequest) -> Notification | None:
    actor = db.get(Account, actor_id)
    if actor is None or not actor.name:
        return None

    if payload.project_id is not None:
        item = db.get(Project, payload.project_id)
        if item is None:
            return None
        title = f'project "{item.title}"'
        path = f"projects/{item.id}"
    else:
        item = db.get(BlogPost, payload.post_id)
        if item is None:
            return None
        title = f'post "{item.title}"'
        path = f"blog/{item.slug}"

    owner = db.get(Account, item.owner_id)
    if owner is None or not owner.email_notifications:
        return None
    # Content pages live under the owner's handle.
    url = f"{settings.frontend_url}/{owner.username or owner.id}/{path}"
    return like_notification(actor.name, owner.email, title, url)


@router.post("/", response_model=LikeResponse)
async def toggle_like_endpoint(
    payload: LikeRequest,
    db: SessionDep,
    claims: ToggleActorDep,
    dispatcher: DispatcherDep,
    background_tasks: BackgroundTasks,
) -> LikeResponse:
    """Like a project or blog post, or remove the like if it exists."""
    try:
        result = toggle_like(
            db,
            claims.account_id,
            project_id=payload.project_id,
            post_id=payload.post_id,
        )
    except ToggleError as err:
        raise toggle_http_error(err) from err
    except SQLAlchemyError as err:
        raise store_http_error(db, err, "like") from err

    if result.created:
        notification = _build_notification(db, claims.account_id, payload)
        if notification is not None:
            background_tasks.add_task(dispatcher.dispatch, notification)

    return LikeResponse(liked=result.active, likes_count=result.counter)
