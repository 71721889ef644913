# tests/v1/test_admin.py
"""Tests for administrative account management."""

from fastapi import status


class TestAdminUsers:
    def test_non_admin_is_rejected(self, client, developer_headers):
        response = client.get("/api/v1/admin/users", headers=developer_headers)
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_list_users_with_filter(self, client, admin_headers, make_account):
        pending = make_account(username="newbie", approved=False)

        response = client.get("/api/v1/admin/users", params={"approved": False}, headers=admin_headers)

        assert response.status_code == status.HTTP_200_OK
        assert [u["id"] for u in response.json()] == [pending.id]

    def test_approval_bumps_auth_version(self, client, admin_headers, make_account, make_headers):
        pending = make_account(username="newbie", approved=False)
        old_headers = make_headers(pending)

        response = client.patch(
            f"/api/v1/admin/users/{pending.id}", json={"approved": True}, headers=admin_headers
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["approved"] is True

        # Tokens issued before the change are re-derived on use.
        session = client.get("/api/v1/auth/session", headers=old_headers).json()
        assert session["approved"] is True

    def test_update_unknown_user(self, client, admin_headers):
        response = client.patch(
            "/api/v1/admin/users/nobody", json={"is_admin": True}, headers=admin_headers
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND
