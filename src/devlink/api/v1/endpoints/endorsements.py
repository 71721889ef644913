# src/devlink/api/v1/endpoints/endorsements.py
"""Skill endorsement endpoints."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from devlink.api.v1.dependencies import DispatcherDep, SessionDep, ToggleActorDep
from devlink.api.v1.errors import store_http_error, toggle_http_error
from devlink.core.settings import settings
from devlink.models import Account
from devlink.schemas.toggle import EndorsementRequest, EndorsementResponse, EndorsementSummary
from devlink.services.notifications import endorsement_notification
from devlink.services.toggles import (
    ToggleError,
    endorsement_summary,
    match_declared_skill,
    toggle_endorsement,
)

router = APIRouter(prefix="/endorsements", tags=["endorsements"])


@router.post("/", response_model=EndorsementResponse)
async def toggle_endorsement_endpoint(
    payload: EndorsementRequest,
    db: SessionDep,
    claims: ToggleActorDep,
    dispatcher: DispatcherDep,
    background_tasks: BackgroundTasks,
) -> EndorsementResponse:
    """Endorse one of a developer's declared skills, or withdraw the endorsement."""
    try:
        result = toggle_endorsement(db, claims.account_id, payload.user_id, payload.skill)
    except ToggleError as err:
        raise toggle_http_error(err) from err
    except SQLAlchemyError as err:
        raise store_http_error(db, err, "endorsement") from err

    target = db.get(Account, payload.user_id)
    skill = match_declared_skill(target, payload.skill) if target else None
    skill = skill or payload.skill

    if result.created and target is not None and target.email_notifications:
        actor = db.get(Account, claims.account_id)
        if actor is not None and actor.name:
            profile_url = f"{settings.frontend_url}/{target.username or target.id}"
            background_tasks.add_task(
                dispatcher.dispatch,
                endorsement_notification(actor.name, target.email, skill, profile_url),
            )

    return EndorsementResponse(endorsed=result.active, skill=skill)


@router.get("/{user_id}", response_model=EndorsementSummary)
async def get_endorsements(user_id: str, db: SessionDep) -> EndorsementSummary:
    """Return per-skill endorsement counts for ``user_id``."""
    account = db.get(Account, user_id)
    if account is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return EndorsementSummary(
        user_id=account.id,
        total=account.endorsements_count,
        skills=endorsement_summary(db, user_id),
    )
