# src/devlink/api/v1/endpoints/access.py
"""Expose page-guard decisions to API callers."""

from __future__ import annotations

from fastapi import APIRouter, Query

from devlink.api.v1.dependencies import OptionalClaimsDep
from devlink.schemas.session import AccessCheckResponse
from devlink.services.access import evaluate

router = APIRouter(prefix="/access", tags=["access"])


@router.get("/check", response_model=AccessCheckResponse)
async def check_access(
    claims: OptionalClaimsDep,
    path: str = Query(..., min_length=1),
) -> AccessCheckResponse:
    decision = evaluate(claims, path)
    return AccessCheckResponse(
        path=path,
        allowed=decision.allowed,
        kind=decision.kind,
        redirect_to=decision.redirect_to,
    )
