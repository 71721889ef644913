# tests/v1/test_auth.py
"""Tests for OAuth callbacks and session endpoints."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from authlib.integrations.starlette_client import OAuthError
from fastapi import status
from sqlalchemy import select

from devlink.api.v1.endpoints import auth as auth_endpoints
from devlink.core.settings import settings
from devlink.models import Account
from devlink.services.identity import ExternalProfile, decode_token


def _github_profile(**overrides) -> ExternalProfile:
    values = {
        "provider": "github",
        "subject_id": "583231",
        "email": "octo@example.com",
        "display_name": "The Octocat",
        "login": "octocat",
        "bio": "Mascot",
        "access_token": "gho_abc",
    }
    values.update(overrides)
    return ExternalProfile(**values)


class TestOAuthCallback:
    """GET /api/v1/auth/{provider}/callback."""

    def test_callback_signs_in_and_sets_cookie(self, client, db_session):
        oauth_client = MagicMock()
        oauth_client.authorize_access_token = AsyncMock(return_value={"access_token": "gho_abc"})

        with patch.object(auth_endpoints, "_get_client", return_value=oauth_client), patch.object(
            auth_endpoints, "fetch_external_profile", AsyncMock(return_value=_github_profile())
        ):
            response = client.get("/api/v1/auth/github/callback", follow_redirects=False)

        assert response.status_code == status.HTTP_302_FOUND
        assert response.headers["location"] == f"{settings.frontend_url}/dashboard"
        token = response.cookies.get(settings.session_cookie_name)
        assert token

        account = db_session.scalar(select(Account).where(Account.email == "octo@example.com"))
        assert account.username == "octocat"
        assert account.bio == "Mascot"
        claims = decode_token(token)
        assert claims.account_id == account.id
        assert claims.role == "developer"
        assert claims.approved is False

    def test_provider_error_is_400(self, client):
        oauth_client = MagicMock()
        oauth_client.authorize_access_token = AsyncMock(
            side_effect=OAuthError(error="access_denied")
        )
        with patch.object(auth_endpoints, "_get_client", return_value=oauth_client):
            response = client.get("/api/v1/auth/github/callback", follow_redirects=False)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_github_api_failure_is_400(self, client, db_session):
        oauth_client = MagicMock()
        oauth_client.authorize_access_token = AsyncMock(return_value={"access_token": "gho_abc"})
        oauth_client.get = AsyncMock(
            return_value=httpx.Response(
                status.HTTP_502_BAD_GATEWAY,
                request=httpx.Request("GET", "https://api.github.com/user"),
            )
        )
        with patch.object(auth_endpoints, "_get_client", return_value=oauth_client):
            response = client.get("/api/v1/auth/github/callback", follow_redirects=False)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"detail": "OAuth sign-in failed"}
        assert db_session.scalar(select(Account)) is None

    def test_unknown_provider(self, client):
        response = client.get("/api/v1/auth/gitlab/login", follow_redirects=False)
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestFetchExternalProfile:
    @pytest.mark.asyncio
    async def test_google_profile_from_userinfo(self):
        token = {
            "access_token": "ya29",
            "userinfo": {"sub": "g-1", "email": "c@example.com", "name": "Casey"},
        }
        profile = await auth_endpoints.fetch_external_profile("google", MagicMock(), token)

        assert profile.provider == "google"
        assert profile.subject_id == "g-1"
        assert profile.login is None

    @pytest.mark.asyncio
    async def test_github_profile_falls_back_to_verified_email(self):
        user_resp = MagicMock()
        user_resp.json.return_value = {
            "id": 42,
            "login": "octocat",
            "name": None,
            "email": None,
            "blog": "",
            "html_url": "https://github.com/octocat",
        }
        emails_resp = MagicMock()
        emails_resp.json.return_value = [
            {"email": "old@example.com", "verified": False, "primary": False},
            {"email": "octo@example.com", "verified": True, "primary": True},
        ]
        oauth_client = MagicMock()
        oauth_client.get = AsyncMock(side_effect=[user_resp, emails_resp])

        profile = await auth_endpoints.fetch_external_profile(
            "github", oauth_client, {"access_token": "gho_abc"}
        )

        assert profile.email == "octo@example.com"
        assert profile.subject_id == "42"
        assert profile.display_name == "octocat"
        assert profile.blog_url is None
        assert profile.access_token == "gho_abc"


class TestSessionEndpoints:
    """Session, refresh and logout."""

    def test_session_from_bearer_header(self, client, developer_headers, developer):
        response = client.get("/api/v1/auth/session", headers=developer_headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "account_id": developer.id,
            "username": "alex",
            "role": "developer",
            "approved": True,
            "is_admin": False,
        }

    def test_session_from_cookie(self, client, developer_headers):
        token = developer_headers["Authorization"].split(" ", 1)[1]
        client.cookies.set(settings.session_cookie_name, token)

        response = client.get("/api/v1/auth/session")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["username"] == "alex"

    def test_session_requires_token(self, client):
        response = client.get("/api/v1/auth/session")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_refresh_reads_current_flags(self, client, make_account, make_headers, db_session):
        account = make_account(approved=False)
        headers = make_headers(account)
        account.approved = True
        db_session.commit()

        response = client.post("/api/v1/auth/session/refresh", headers=headers)

        assert response.status_code == status.HTTP_200_OK
        token = response.json()["access_token"]
        assert decode_token(token).approved is True
        assert response.cookies.get(settings.session_cookie_name) == token

    def test_logout_clears_cookie(self, client):
        response = client.post("/api/v1/auth/logout")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"ok": True}
        assert settings.session_cookie_name in response.headers["set-cookie"]
