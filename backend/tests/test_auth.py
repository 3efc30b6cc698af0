"""
Parcel Server - Bearer Authentication Tests
============================================

What we test:
    ✅ Missing or malformed Authorization header -> 401
    ✅ Token rejected by the identity provider -> 403
    ✅ Unprotected routes ignore the header entirely
    ✅ ensure_same_email resolves or refuses the requested email
"""

import pytest

from app.dependencies import AuthenticatedUser, ensure_same_email
from app.exceptions import ForbiddenError


class TestProtectedRoutes:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("header", [None, "Bearer", "tokenonly"])
    async def test_unusable_header_returns_401(self, test_client, header):
        headers = {"Authorization": header} if header is not None else {}

        response = await test_client.get("/parcels", headers=headers)

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        body = response.json()
        assert body["error"] == "unauthorized"
        assert body["message"] == "Unauthorized access"

    @pytest.mark.asyncio
    async def test_rejected_token_returns_403(self, test_client):
        response = await test_client.get("/payments", headers={"Authorization": "Bearer expired"})

        assert response.status_code == 403
        assert response.json()["message"] == "Forbidden access"

    @pytest.mark.asyncio
    async def test_any_scheme_token_is_verified(self, test_client):
        response = await test_client.get(
            "/parcels", headers={"Authorization": "Basic dXNlcjpwYXNz"}
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_error_body_carries_request_id(self, test_client):
        response = await test_client.get("/parcels", headers={"X-Request-ID": "trace-42"})

        assert response.headers["X-Request-ID"] == "trace-42"
        assert response.json()["request_id"] == "trace-42"

    @pytest.mark.asyncio
    async def test_unprotected_route_ignores_bad_token(self, test_client):
        response = await test_client.get(
            "/riders/pending", headers={"Authorization": "Bearer forged"}
        )
        assert response.status_code == 200


class TestEnsureSameEmail:

    def setup_method(self):
        self.user = AuthenticatedUser(uid="u1", email="alice@example.com")

    def test_matching_email(self):
        assert ensure_same_email(self.user, "alice@example.com") == "alice@example.com"

    def test_omitted_email_defaults_to_caller(self):
        assert ensure_same_email(self.user, None) == "alice@example.com"

    def test_mismatch_is_forbidden(self):
        with pytest.raises(ForbiddenError):
            ensure_same_email(self.user, "bob@example.com")

    def test_token_without_email_is_forbidden(self):
        with pytest.raises(ForbiddenError):
            ensure_same_email(AuthenticatedUser(uid="u2"), None)
