"""Request-path guard for role-gated page areas."""

from __future__ import annotations

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from devlink.core.settings import settings
from devlink.services.access import evaluate, is_protected
from devlink.services.identity import InvalidTokenError, SessionClaims, decode_token

logger = logging.getLogger(__name__)


def claims_from_request(request: Request) -> SessionClaims | None:
    """Decode the Bearer header or session cookie without touching the database."""
    header = request.headers.get("authorization", "")
    scheme, _, credentials = header.partition(" ")
    token = credentials.strip() if scheme.lower() == "bearer" else ""
    token = token or request.cookies.get(settings.session_cookie_name, "")
    if not token:
        return None
    try:
        return decode_token(token)
    except InvalidTokenError:
        return None


class AccessGuardMiddleware(BaseHTTPMiddleware):
    """Redirect requests for protected paths the caller may not open.

    Decisions use the claims captured in the token; they are not re-read from
    the account.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if not is_protected(path):
            return await call_next(request)

        decision = evaluate(claims_from_request(request), path)
        if decision.allowed:
            return await call_next(request)

        logger.debug("Guard redirected %s to %s (%s)", path, decision.redirect_to, decision.kind)
        return RedirectResponse(decision.redirect_to or "/", status_code=307)
