"""Translation of service-layer failures into HTTP errors."""

from __future__ import annotations

import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from devlink.services.toggles import TargetNotFoundError, ToggleError

logger = logging.getLogger(__name__)


def toggle_http_error(err: ToggleError) -> HTTPException:
    """Map a toggle validation error to 404 for unknown targets, 400 otherwise."""
    if isinstance(err, TargetNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(err))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err))


def store_http_error(db: Session, err: SQLAlchemyError, action: str) -> HTTPException:
    """Roll back ``db``, log ``err`` and build the generic 500 response."""
    db.rollback()
    logger.error("Error during %s: %s", action, err, exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error",
    )
