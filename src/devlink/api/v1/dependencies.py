"""Shared API dependencies for authentication and common functionality."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from devlink.core.settings import settings
from devlink.db.session import get_db
from devlink.models import Account
from devlink.services.identity import (
    InvalidTokenError,
    SessionClaims,
    decode_token,
    materialize_session,
)
from devlink.services.notifications import NotificationDispatcher
from devlink.services.rate_limit import RateLimiter

# HTTP Bearer scheme; the session cookie is accepted when no header is sent.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]
BearerDep = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


def extract_token(request: Request, credentials: HTTPAuthorizationCredentials | None) -> str | None:
    """Return the session token from the Bearer header or the session cookie."""
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.session_cookie_name) or None


def get_optional_claims(
    request: Request,
    credentials: BearerDep,
    db: SessionDep,
) -> SessionClaims | None:
    """Materialize the request's session, or return None for anonymous callers."""
    token = extract_token(request, credentials)
    if token is None:
        return None
    try:
        claims = decode_token(token)
    except InvalidTokenError:
        return None
    return materialize_session(db, claims)


OptionalClaimsDep = Annotated[SessionClaims | None, Depends(get_optional_claims)]


def get_current_claims(
    request: Request,
    credentials: BearerDep,
    db: SessionDep,
) -> SessionClaims:
    """Get the current session from the JWT token.

    Raises:
        HTTPException: 401 if no token is sent, it is invalid, or the account
            no longer exists.
    """
    token = extract_token(request, credentials)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    try:
        claims = decode_token(token)
    except InvalidTokenError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err

    session = materialize_session(db, claims)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return session


CurrentClaimsDep = Annotated[SessionClaims, Depends(get_current_claims)]


def get_current_account(claims: CurrentClaimsDep, db: SessionDep) -> Account:
    account = db.get(Account, claims.account_id)
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return account


CurrentAccountDep = Annotated[Account, Depends(get_current_account)]


def require_admin(claims: CurrentClaimsDep) -> SessionClaims:
    if not claims.is_admin:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return claims


AdminDep = Annotated[SessionClaims, Depends(require_admin)]


def get_rate_limiter(request: Request) -> RateLimiter:
    """Return the limiter created at startup."""
    limiter: RateLimiter | None = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        limiter = RateLimiter()
        request.app.state.rate_limiter = limiter
    return limiter


RateLimiterDep = Annotated[RateLimiter, Depends(get_rate_limiter)]


def get_notification_dispatcher(request: Request) -> NotificationDispatcher:
    """Return the dispatcher created at startup."""
    dispatcher: NotificationDispatcher | None = getattr(
        request.app.state, "notification_dispatcher", None
    )
    if dispatcher is None:
        dispatcher = NotificationDispatcher(settings.notification_webhook_url)
        request.app.state.notification_dispatcher = dispatcher
    return dispatcher


DispatcherDep = Annotated[NotificationDispatcher, Depends(get_notification_dispatcher)]


def toggle_rate_limit(claims: CurrentClaimsDep, limiter: RateLimiterDep) -> SessionClaims:
    """Authenticate the caller and count the request against their toggle budget.

    Raises:
        HTTPException: 429 once the caller exhausted the current window.
    """
    result = limiter.check(
        f"toggle:{claims.account_id}",
        settings.toggle_rate_limit,
        settings.toggle_rate_window_seconds,
    )
    if not result.allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests",
        )
    return claims


ToggleActorDep = Annotated[SessionClaims, Depends(toggle_rate_limit)]
