"""Identity resolution: OAuth profiles to accounts, handles and session tokens.

The resolver turns a provider-confirmed profile into a durable
:class:`~devlink.models.Account`, assigns the public handle exactly once and
issues the JWT that carries role/approval/admin claims.

Handle assignment never probes and then writes. Each candidate is claimed with
a single conditional ``UPDATE`` inside a savepoint; a unique-constraint
violation means another account owns the candidate and the next one is tried.
The candidate sequence is bounded and falls back to a random suffix.
"""

from __future__ import annotations

import logging
import re
import secrets
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from devlink.core.settings import settings
from devlink.models import Account, LinkedIdentity
from devlink.models.account import ROLE_CLIENT, ROLE_DEVELOPER

logger = logging.getLogger(__name__)

# Provider whose profile carries a natural handle candidate.
RICH_PROVIDER = "github"
DEFAULT_HANDLE = "developer"
_MAX_HANDLE_LENGTH = 64
_SLUG_INVALID = re.compile(r"[^a-z0-9]+")

# Account attribute -> ExternalProfile attribute, filled only when empty.
_MERGE_FIELDS: tuple[tuple[str, str], ...] = (
    ("name", "display_name"),
    ("image", "avatar_url"),
    ("bio", "bio"),
    ("location", "location"),
    ("website", "blog_url"),
    ("github", "profile_url"),
)

# Role and approval given to accounts created through each provider.
_PROVIDER_DEFAULTS: dict[str, tuple[str, bool]] = {
    "github": (ROLE_DEVELOPER, False),
    "google": (ROLE_CLIENT, True),
}


class HandleAssignmentError(RuntimeError):
    """Raised when no unique handle could be claimed."""


class InvalidTokenError(ValueError):
    """Raised when a session token cannot be decoded or lacks claims."""


@dataclass(frozen=True)
class ExternalProfile:
    """Profile delivered by an OAuth provider after it confirmed the identity."""

    provider: str
    subject_id: str
    email: str
    display_name: str | None = None
    avatar_url: str | None = None
    login: str | None = None
    bio: str | None = None
    location: str | None = None
    blog_url: str | None = None
    profile_url: str | None = None
    access_token: str | None = None

    @property
    def is_rich(self) -> bool:
        return self.provider == RICH_PROVIDER


@dataclass(frozen=True)
class SessionClaims:
    """Identity and authorization snapshot carried by a session token."""

    account_id: str
    role: str
    approved: bool
    is_admin: bool
    username: str | None = None
    version: int = 1


def slugify(value: str | None) -> str:
    """Lower-case ``value`` and collapse anything but ``[a-z0-9]`` into dashes."""
    if not value:
        return ""
    return _SLUG_INVALID.sub("-", value.lower()).strip("-")


def derive_base_handle(profile: ExternalProfile) -> str:
    """Pick the handle stem: login, display name, email local part, then a default."""
    login = (profile.login or "").strip()
    if login:
        return login[:_MAX_HANDLE_LENGTH]
    for candidate in (profile.display_name, (profile.email or "").split("@")[0]):
        slug = slugify(candidate)
        if slug:
            return slug[:_MAX_HANDLE_LENGTH]
    return DEFAULT_HANDLE


def handle_candidates(base: str, max_attempts: int) -> Iterator[str]:
    """Yield ``base``, ``base1``, ``base2``... for at most ``max_attempts`` values."""
    if max_attempts < 1:
        return
    yield base
    for suffix in range(1, max_attempts):
        tail = str(suffix)
        yield f"{base[: _MAX_HANDLE_LENGTH - len(tail)]}{tail}"


def _random_candidate(base: str) -> str:
    tail = f"-{secrets.token_hex(4)}"
    return f"{base[: _MAX_HANDLE_LENGTH - len(tail)]}{tail}"


def _try_claim_handle(db: Session, account_id: str, candidate: str) -> bool | None:
    """Claim ``candidate`` for an account that has no handle yet.

    Returns True when claimed, False when the candidate belongs to someone else,
    and None when the account already holds a handle.
    """
    try:
        with db.begin_nested():
            result = db.execute(
                update(Account)
                .where(Account.id == account_id, Account.username.is_(None))
                .values(username=candidate)
                .execution_options(synchronize_session=False)
            )
    except IntegrityError:
        return False
    if result.rowcount == 0:
        return None
    return True


def assign_handle(
    db: Session,
    account: Account,
    base: str,
    *,
    max_attempts: int | None = None,
    random_attempts: int | None = None,
) -> str:
    """Assign a unique handle to ``account`` and return it.

    The caller owns the transaction; this function only flushes savepoints.

    Raises:
        HandleAssignmentError: If neither the numbered nor the random
            candidates could be claimed.
    """
    max_attempts = settings.handle_max_attempts if max_attempts is None else max_attempts
    random_attempts = (
        settings.handle_random_attempts if random_attempts is None else random_attempts
    )

    numbered = handle_candidates(base, max_attempts)
    randomised = (_random_candidate(base) for _ in range(random_attempts))
    for candidate in (*numbered, *randomised):
        claimed = _try_claim_handle(db, account.id, candidate)
        if claimed is None:
            db.refresh(account, attribute_names=["username"])
            logger.info("Account %s already holds handle %s", account.id, account.username)
            return account.username or ""
        if claimed:
            db.refresh(account, attribute_names=["username"])
            return candidate

    raise HandleAssignmentError(f"Could not assign a unique handle derived from {base!r}")


def merge_provider_profile(account: Account, profile: ExternalProfile) -> list[str]:
    """Copy provider values into empty account fields; never overwrite.

    Returns:
        Names of the account fields that were filled.
    """
    filled: list[str] = []
    for account_field, profile_field in _MERGE_FIELDS:
        incoming = getattr(profile, profile_field)
        if not incoming:
            continue
        if getattr(account, account_field):
            continue
        setattr(account, account_field, incoming)
        filled.append(account_field)
    return filled


def on_sign_in(db: Session, profile: ExternalProfile, account: Account) -> bool:
    """Enrich ``account`` after the provider confirmed ``profile``.

    For the rich provider, an account without a handle gets one together with
    the empty-field profile merge. Enrichment failures are logged and never
    block the sign-in.
    """
    if not profile.is_rich or account.username:
        return True

    try:
        handle = assign_handle(db, account, derive_base_handle(profile))
        filled = merge_provider_profile(account, profile)
        db.commit()
        logger.info(
            "Assigned handle %s to account %s (filled: %s)",
            handle,
            account.id,
            ", ".join(filled) or "nothing",
        )
    except (SQLAlchemyError, HandleAssignmentError):
        db.rollback()
        logger.error("Profile enrichment failed for account %s", account.id, exc_info=True)
    return True


def on_link_identity(db: Session, profile: ExternalProfile, account: Account) -> None:
    """Apply the empty-field merge when a provider is linked to an existing account."""
    try:
        filled = merge_provider_profile(account, profile)
        db.commit()
        if filled:
            logger.info(
                "Linked %s to account %s (filled: %s)",
                profile.provider,
                account.id,
                ", ".join(filled),
            )
    except SQLAlchemyError:
        db.rollback()
        logger.error(
            "Profile merge failed while linking %s to account %s",
            profile.provider,
            account.id,
            exc_info=True,
        )


def _link(db: Session, account: Account, profile: ExternalProfile) -> LinkedIdentity:
    identity = LinkedIdentity(
        provider=profile.provider,
        provider_account_id=profile.subject_id,
        access_token=profile.access_token,
    )
    account.identities.append(identity)
    return identity


def resolve_account(db: Session, profile: ExternalProfile) -> tuple[Account, bool]:
    """Find or create the account behind ``profile``.

    Lookup order is the linked identity, then the e-mail address (linking the
    provider to that account), then a brand new account with the provider's
    default role.

    Returns:
        The account and whether it was created.
    """
    identity = db.scalars(
        select(LinkedIdentity).where(
            LinkedIdentity.provider == profile.provider,
            LinkedIdentity.provider_account_id == profile.subject_id,
        )
    ).first()
    if identity is not None:
        if profile.access_token and identity.access_token != profile.access_token:
            identity.access_token = profile.access_token
            db.commit()
        return identity.account, False

    email = profile.email.strip().lower()
    account = db.scalars(select(Account).where(Account.email == email)).first()
    if account is not None:
        _link(db, account, profile)
        db.flush()
        on_link_identity(db, profile, account)
        return account, False

    role, approved = _PROVIDER_DEFAULTS.get(profile.provider, (ROLE_CLIENT, True))
    is_admin = False
    if profile.is_rich and (profile.login or "").lower() in settings.bootstrap_admins:
        approved = True
        is_admin = True

    account = Account(
        email=email,
        name=profile.display_name,
        image=profile.avatar_url,
        role=role,
        approved=approved,
        is_admin=is_admin,
        skills=[],
    )
    _link(db, account, profile)
    db.add(account)
    db.commit()
    db.refresh(account)
    logger.info("Created %s account %s via %s", role, account.id, profile.provider)
    return account, True


def issue_token(account: Account, *, expires_minutes: int | None = None) -> str:
    """Encode the account's authorization snapshot into a signed JWT."""
    minutes = settings.access_token_expire_minutes if expires_minutes is None else expires_minutes
    to_encode: dict[str, object] = {
        "sub": account.id,
        "role": account.role,
        "approved": bool(account.approved),
        "is_admin": bool(account.is_admin),
        "ver": int(account.auth_version or 1),
        "exp": datetime.now(UTC) + timedelta(minutes=minutes),
    }
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_token(token: str) -> SessionClaims:
    """Decode a session token.

    Raises:
        InvalidTokenError: If the signature, expiry or claims are invalid.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as err:
        raise InvalidTokenError("Could not validate credentials") from err

    subject = payload.get("sub")
    role = payload.get("role")
    if not subject or not role:
        raise InvalidTokenError("Could not validate credentials")
    return SessionClaims(
        account_id=str(subject),
        role=str(role),
        approved=bool(payload.get("approved", False)),
        is_admin=bool(payload.get("is_admin", False)),
        version=int(payload.get("ver", 1)),
    )


def materialize_session(db: Session, claims: SessionClaims) -> SessionClaims | None:
    """Build the request-scoped session from token claims.

    The handle is re-read on every call. Role, approval and admin flags stay as
    captured in the token unless the account's ``auth_version`` moved on, in
    which case they are re-derived from the account.
    """
    account = db.get(Account, claims.account_id)
    if account is None:
        return None
    if account.auth_version != claims.version:
        return SessionClaims(
            account_id=account.id,
            role=account.role,
            approved=bool(account.approved),
            is_admin=bool(account.is_admin),
            username=account.username,
            version=account.auth_version,
        )
    return SessionClaims(
        account_id=claims.account_id,
        role=claims.role,
        approved=claims.approved,
        is_admin=claims.is_admin,
        username=account.username,
        version=claims.version,
    )


def refresh_token(db: Session, claims: SessionClaims) -> str | None:
    """Issue a fresh token from the account's current flags."""
    account = db.get(Account, claims.account_id)
    if account is None:
        return None
    return issue_token(account)


def bump_auth_version(account: Account) -> None:
    """Signal that tokens issued before this change carry stale claims."""
    account.auth_version = (account.auth_version or 1) + 1
