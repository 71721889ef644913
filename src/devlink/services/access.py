"""Path-based authorization decisions for role-gated areas."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Literal

from devlink.models.account import ROLE_CLIENT, ROLE_DEVELOPER
from devlink.services.identity import SessionClaims

DecisionKind = Literal["allow", "login", "role_home", "pending_approval", "home"]

LOGIN_PATH: Final[str] = "/login"
HOME_PATH: Final[str] = "/"
PENDING_APPROVAL_PATH: Final[str] = "/pending-approval"
DEVELOPER_HOME: Final[str] = "/developer/dashboard"
CLIENT_HOME: Final[str] = "/client/dashboard"
LEGACY_DASHBOARD: Final[str] = "/dashboard"

DEVELOPER_AREA: Final[str] = "/developer"
CLIENT_AREA: Final[str] = "/client"
ADMIN_AREA: Final[str] = "/admin"

# Prefixes the request-path guard is mounted on.
PROTECTED_PREFIXES: Final[tuple[str, ...]] = (
    DEVELOPER_AREA,
    CLIENT_AREA,
    LEGACY_DASHBOARD,
    ADMIN_AREA,
)


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of evaluating one request path."""

    kind: DecisionKind
    redirect_to: str | None = None

    @property
    def allowed(self) -> bool:
        return self.kind == "allow"


ALLOW: Final[AccessDecision] = AccessDecision("allow")


def _redirect(kind: DecisionKind, target: str) -> AccessDecision:
    return AccessDecision(kind, target)


def under(path: str, prefix: str) -> bool:
    """Return True if ``path`` is ``prefix`` or a sub-path of it."""
    return path == prefix or path.startswith(prefix + "/")


def is_protected(path: str) -> bool:
    return any(under(path, prefix) for prefix in PROTECTED_PREFIXES)


def evaluate(claims: SessionClaims | None, path: str) -> AccessDecision:
    """Decide whether ``claims`` may open ``path``.

    Rules are evaluated top to bottom and the first match wins; anything not
    matched is allowed through.
    """
    if claims is None:
        return _redirect("login", LOGIN_PATH)

    if under(path, DEVELOPER_AREA):
        if claims.role != ROLE_DEVELOPER:
            return _redirect("role_home", CLIENT_HOME)
        if not claims.approved:
            return _redirect("pending_approval", PENDING_APPROVAL_PATH)

    if under(path, CLIENT_AREA) and claims.role != ROLE_CLIENT:
        return _redirect("role_home", DEVELOPER_HOME)

    if under(path, ADMIN_AREA) and not claims.is_admin:
        return _redirect("home", HOME_PATH)

    if path == LEGACY_DASHBOARD:
        if claims.role == ROLE_CLIENT:
            return _redirect("role_home", CLIENT_HOME)
        if claims.role == ROLE_DEVELOPER:
            if claims.approved:
                return _redirect("role_home", DEVELOPER_HOME)
            return _redirect("pending_approval", PENDING_APPROVAL_PATH)

    return ALLOW
