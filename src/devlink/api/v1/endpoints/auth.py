# src/devlink/api/v1/endpoints/auth.py
"""OAuth sign-in and session token endpoints."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from authlib.integrations.starlette_client import OAuth, OAuthError, StarletteOAuth2App
from fastapi import APIRouter, HTTPException, Request, Response, status
from fastapi.responses import RedirectResponse

from devlink.api.v1.dependencies import CurrentClaimsDep, SessionDep
from devlink.core.settings import settings
from devlink.schemas.session import SessionResponse, TokenResponse
from devlink.services.identity import (
    ExternalProfile,
    issue_token,
    on_sign_in,
    refresh_token,
    resolve_account,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

SUPPORTED_PROVIDERS = ("github", "google")

oauth = OAuth()

if settings.github_client_id and settings.github_client_secret:
    oauth.register(
        name="github",
        client_id=settings.github_client_id,
        client_secret=settings.github_client_secret,
        access_token_url="https://github.com/login/oauth/access_token",
        authorize_url="https://github.com/login/oauth/authorize",
        api_base_url=settings.github_api_base_url.rstrip("/") + "/",
        client_kwargs={"scope": "read:user user:email"},
    )

if settings.google_client_id and settings.google_client_secret:
    oauth.register(
        name="google",
        client_id=settings.google_client_id,
        client_secret=settings.google_client_secret,
        server_metadata_url="https://accounts.google.com/.well-known/openid-configuration",
        client_kwargs={"scope": "openid email profile"},
    )


def _get_client(provider: str) -> StarletteOAuth2App:
    if provider not in SUPPORTED_PROVIDERS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown provider")
    client = oauth.create_client(provider)
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{provider.title()} OAuth not configured",
        )
    return client


async def _github_profile(client: StarletteOAuth2App, token: dict[str, Any]) -> ExternalProfile:
    resp = await client.get("user", token=token)
    resp.raise_for_status()
    user = resp.json()

    email = user.get("email")
    if not email:
        emails_resp = await client.get("user/emails", token=token)
        emails_resp.raise_for_status()
        verified = [e for e in emails_resp.json() if e.get("verified")]
        primary = next((e for e in verified if e.get("primary")), None) or next(iter(verified), None)
        email = primary["email"] if primary else None
    if not email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unable to read GitHub e-mail.")

    return ExternalProfile(
        provider="github",
        subject_id=str(user["id"]),
        email=email,
        display_name=user.get("name") or user.get("login"),
        avatar_url=user.get("avatar_url"),
        login=user.get("login"),
        bio=user.get("bio"),
        location=user.get("location"),
        blog_url=user.get("blog") or None,
        profile_url=user.get("html_url"),
        access_token=token.get("access_token"),
    )


async def fetch_external_profile(
    provider: str,
    client: StarletteOAuth2App,
    token: dict[str, Any],
) -> ExternalProfile:
    """Turn the provider's token response into an :class:`ExternalProfile`."""
    if provider == "github":
        return await _github_profile(client, token)

    userinfo = token.get("userinfo") or await client.userinfo(token=token)
    email = userinfo.get("email")
    sub = userinfo.get("sub")
    if not email or not sub:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unable to read Google profile.")
    return ExternalProfile(
        provider=provider,
        subject_id=str(sub),
        email=email,
        display_name=userinfo.get("name"),
        avatar_url=userinfo.get("picture"),
        access_token=token.get("access_token"),
    )


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )


@router.get("/{provider}/login")
async def oauth_login(provider: str, request: Request) -> Response:
    """Redirect the browser to the provider's consent screen."""
    client = _get_client(provider)
    redirect_uri = f"{settings.oauth_redirect_base.rstrip('/')}/{provider}/callback"
    return await client.authorize_redirect(request, redirect_uri)


@router.get("/{provider}/callback")
async def oauth_callback(provider: str, request: Request, db: SessionDep) -> RedirectResponse:
    """Complete the OAuth flow, sign the account in and set the session cookie."""
    client = _get_client(provider)
    try:
        token = await client.authorize_access_token(request)
        profile = await fetch_external_profile(provider, client, token)
    except (OAuthError, httpx.HTTPError) as err:
        logger.warning("OAuth callback for %s failed: %s", provider, err)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="OAuth sign-in failed") from err

    account, created = resolve_account(db, profile)
    on_sign_in(db, profile, account)
    db.refresh(account)
    logger.info("Signed in account %s via %s (new=%s)", account.id, provider, created)

    response = RedirectResponse(f"{settings.frontend_url}/dashboard", status_code=status.HTTP_302_FOUND)
    _set_session_cookie(response, issue_token(account))
    return response


@router.get("/session", response_model=SessionResponse)
async def get_session(claims: CurrentClaimsDep) -> SessionResponse:
    """Return the materialized session of the caller."""
    return SessionResponse(
        account_id=claims.account_id,
        username=claims.username,
        role=claims.role,
        approved=claims.approved,
        is_admin=claims.is_admin,
    )


@router.post("/session/refresh", response_model=TokenResponse)
async def refresh_session(claims: CurrentClaimsDep, db: SessionDep, response: Response) -> TokenResponse:
    """Re-read role/approval/admin flags and issue a fresh token."""
    token = refresh_token(db, claims)
    if token is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    _set_session_cookie(response, token)
    return TokenResponse(access_token=token, token_type="bearer")


@router.post("/logout")
async def logout(response: Response) -> dict[str, bool]:
    response.delete_cookie(settings.session_cookie_name)
    return {"ok": True}
