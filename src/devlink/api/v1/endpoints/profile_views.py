# src/devlink/api/v1/endpoints/profile_views.py
"""Profile view tracking endpoint."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from devlink.api.v1.dependencies import CurrentAccountDep, OptionalClaimsDep, SessionDep
from devlink.api.v1.errors import store_http_error
from devlink.models import Account
from devlink.schemas.session import (
    ProfileViewRequest,
    ProfileViewResponse,
    RecentView,
    RecentViewsResponse,
    ViewerSummary,
)
from devlink.services.profile_views import record_profile_view, recent_viewers

router = APIRouter(prefix="/profile-views", tags=["profile-views"])


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client is not None:
        return request.client.host
    return "unknown"


@router.post("/", response_model=ProfileViewResponse)
async def track_profile_view(
    payload: ProfileViewRequest,
    request: Request,
    db: SessionDep,
    claims: OptionalClaimsDep,
) -> ProfileViewResponse:
    """Count a view of a profile; anonymous visitors are counted too."""
    try:
        counted = record_profile_view(
            db,
            user_id=payload.user_id,
            viewer_id=claims.account_id if claims else None,
            ip_address=_client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )
    except LookupError as err:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(err)) from err
    except SQLAlchemyError as err:
        raise store_http_error(db, err, "profile view") from err
    return ProfileViewResponse(counted=counted)


@router.get("/recent", response_model=RecentViewsResponse)
async def list_recent_views(db: SessionDep, account: CurrentAccountDep) -> RecentViewsResponse:
    """Return the latest signed-in visitors of the caller's profile."""
    views = recent_viewers(db, account.id)
    viewer_ids = {view.viewer_id for view in views}
    viewers = {
        viewer.id: viewer
        for viewer in db.scalars(select(Account).where(Account.id.in_(viewer_ids)))
    }
    return RecentViewsResponse(
        views=[
            RecentView(
                viewer=ViewerSummary.model_validate(viewers[view.viewer_id]),
                viewed_at=view.created_at,
            )
            for view in views
            if view.viewer_id in viewers
        ],
        total_views=account.profile_views,
    )
