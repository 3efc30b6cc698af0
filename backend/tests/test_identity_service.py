"""
Parcel Server - Firebase Identity Service Tests (Mocked)
=========================================================
"""

from unittest.mock import MagicMock, patch

import pytest
from firebase_admin import auth

from app.exceptions import ForbiddenError, ParcelServerError
from app.services.identity_service import FirebaseIdentityService

VERIFY = "app.services.identity_service.auth.verify_id_token"


@pytest.fixture
def service():
    svc = FirebaseIdentityService(credentials_path="./does-not-exist.json")
    svc._app = MagicMock(project_id="parcel-test")
    return svc


class TestInitialize:

    def test_missing_credentials_file(self, tmp_path):
        svc = FirebaseIdentityService(credentials_path=str(tmp_path / "absent.json"))

        with pytest.raises(FileNotFoundError):
            svc.initialize()
        assert svc.is_initialized is False

    def test_initializes_named_app(self, tmp_path):
        key_file = tmp_path / "firebase_key.json"
        key_file.write_text("{}")
        with patch("app.services.identity_service.credentials.Certificate") as certificate, \
             patch("app.services.identity_service.firebase_admin.initialize_app") as init_app:
            svc = FirebaseIdentityService(credentials_path=str(key_file), app_name="unit")
            svc.initialize()

        certificate.assert_called_once_with(str(key_file))
        init_app.assert_called_once_with(certificate.return_value, name="unit")
        assert svc.is_initialized is True


class TestVerifyToken:

    @pytest.mark.asyncio
    async def test_returns_decoded_claims(self, service):
        claims = {"uid": "u1", "email": "alice@example.com"}
        with patch(VERIFY, return_value=claims) as verify:
            result = await service.verify_token("id-token")

        assert result == claims
        verify.assert_called_once_with("id-token", app=service._app, check_revoked=True)

    @pytest.mark.asyncio
    async def test_invalid_token_is_forbidden(self, service):
        with patch(VERIFY, side_effect=auth.InvalidIdTokenError("bad signature")):
            with pytest.raises(ForbiddenError):
                await service.verify_token("forged")

    @pytest.mark.asyncio
    async def test_revoked_token_is_forbidden(self, service):
        with patch(VERIFY, side_effect=auth.RevokedIdTokenError("Firebase ID token has been revoked")):
            with pytest.raises(ForbiddenError):
                await service.verify_token("revoked")

    @pytest.mark.asyncio
    async def test_malformed_token_is_forbidden(self, service):
        with patch(VERIFY, side_effect=ValueError("Illegal ID token provided")):
            with pytest.raises(ForbiddenError):
                await service.verify_token("")

    @pytest.mark.asyncio
    async def test_uninitialized_service_is_a_server_error(self):
        svc = FirebaseIdentityService(credentials_path="./does-not-exist.json")

        with pytest.raises(ParcelServerError) as exc_info:
            await svc.verify_token("id-token")
        assert not isinstance(exc_info.value, ForbiddenError)


def test_close_deletes_app(service):
    firebase_app = service._app
    with patch("app.services.identity_service.firebase_admin.delete_app") as delete_app:
        service.close()
        service.close()

    delete_app.assert_called_once_with(firebase_app)
    assert service.is_initialized is False
