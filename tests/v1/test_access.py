# tests/v1/test_access.py
"""Tests for the access check endpoint and the page guard middleware."""

from fastapi import status

from devlink.core.settings import settings


class TestAccessCheck:
    def test_anonymous_caller(self, client):
        response = client.get("/api/v1/access/check", params={"path": "/developer/dashboard"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "path": "/developer/dashboard",
            "allowed": False,
            "kind": "login",
            "redirect_to": "/login",
        }

    def test_client_in_developer_area(self, client, client_headers):
        response = client.get(
            "/api/v1/access/check", params={"path": "/developer/projects"}, headers=client_headers
        )
        assert response.json()["redirect_to"] == "/client/dashboard"

    def test_approved_developer_allowed(self, client, developer_headers):
        response = client.get(
            "/api/v1/access/check", params={"path": "/developer/projects"}, headers=developer_headers
        )
        assert response.json()["allowed"] is True


class TestGuardMiddleware:
    """Redirects issued for protected page paths."""

    def test_anonymous_redirected_to_login(self, client):
        response = client.get("/developer/dashboard", follow_redirects=False)

        assert response.status_code == status.HTTP_307_TEMPORARY_REDIRECT
        assert response.headers["location"] == "/login"

    def test_client_redirected_from_developer_area(self, client, client_headers):
        response = client.get("/developer/dashboard", headers=client_headers, follow_redirects=False)

        assert response.status_code == status.HTTP_307_TEMPORARY_REDIRECT
        assert response.headers["location"] == "/client/dashboard"

    def test_unapproved_developer_from_cookie(self, client, make_account, make_headers):
        pending = make_account(approved=False)
        token = make_headers(pending)["Authorization"].split(" ", 1)[1]
        client.cookies.set(settings.session_cookie_name, token)

        response = client.get("/dashboard", follow_redirects=False)

        assert response.headers["location"] == "/pending-approval"

    def test_allowed_request_passes_through(self, client, developer_headers):
        response = client.get("/developer/dashboard", headers=developer_headers, follow_redirects=False)

        # No page is served by the API; the guard simply lets the request through.
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_unprotected_paths_are_untouched(self, client):
        assert client.get("/developers", follow_redirects=False).status_code == status.HTTP_404_NOT_FOUND
        assert client.get("/health").status_code == status.HTTP_200_OK
