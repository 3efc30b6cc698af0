"""
Parcel Server - Firebase Identity Service
==========================================

What:  Verifies Firebase ID tokens presented as bearer credentials.
How:   A named firebase_admin App is initialized from the service-account
       file at startup and deleted at shutdown. verify_id_token is blocking
       (it may fetch Google's public certificates), so it runs in Starlette's
       thread pool.
Who:   Built in the app lifespan; used by the auth dependency.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import firebase_admin
from firebase_admin import auth, credentials
from firebase_admin import exceptions as firebase_exceptions
from starlette.concurrency import run_in_threadpool

from app.exceptions import ForbiddenError, ParcelServerError

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "parcel-server"


class FirebaseIdentityService:
    """
    Owns one firebase_admin App and verifies tokens against it.

    Lifecycle:
        initialize() -> verify_token() per request -> close()
    """

    def __init__(self, credentials_path: str, app_name: str = FIREBASE_APP_NAME):
        self.credentials_path = credentials_path
        self.app_name = app_name
        self._app: Optional[firebase_admin.App] = None

    @property
    def is_initialized(self) -> bool:
        return self._app is not None

    def initialize(self) -> None:
        """
        Load the service-account credentials and create the Firebase App.

        Raises:
            FileNotFoundError: credential file missing
            ValueError: credential file is not a valid service account
        """
        path = Path(self.credentials_path)
        if not path.is_file():
            raise FileNotFoundError(f"Firebase credential file not found: {path}")

        cert = credentials.Certificate(str(path))
        self._app = firebase_admin.initialize_app(cert, name=self.app_name)
        logger.info("Firebase identity service initialized (project=%s)", self._app.project_id)

    async def verify_token(self, token: str) -> Dict[str, Any]:
        """
        Verify a Firebase ID token and return its decoded claims.

        Raises:
            ForbiddenError: the token is malformed, expired, revoked, or the
                identity provider refused it for any other reason.
            ParcelServerError: the service was never initialized.
        """
        if self._app is None:
            raise ParcelServerError(
                message="Authentication service is not available.",
                context={"reason": "firebase app not initialized"},
            )

        try:
            return await run_in_threadpool(
                auth.verify_id_token,
                token,
                app=self._app,
                check_revoked=True,
            )
        except (ValueError, firebase_exceptions.FirebaseError) as e:
            logger.info("ID token rejected: %s", type(e).__name__)
            raise ForbiddenError(context={"error_type": type(e).__name__})

    def close(self) -> None:
        """Delete the Firebase App; safe to call when never initialized."""
        if self._app is not None:
            firebase_admin.delete_app(self._app)
            self._app = None
            logger.info("Firebase identity service closed")
