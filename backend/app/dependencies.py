"""
Parcel Server - Request Dependencies
=====================================

What:  FastAPI dependencies for the collaborators built in the lifespan
       (identity service, payment gateway) and for bearer authentication.
How:   Collaborators live on app.state; tests swap them with
       app.dependency_overrides.

Route protection is declared where the route is declared:

    @router.get("/parcels")
    async def list_parcels(user: AuthenticatedUser = Depends(require_user)): ...

so the router modules are the one place that says which endpoints need a
signed-in caller.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from fastapi.security.utils import get_authorization_scheme_param
from pydantic import BaseModel, Field

from app.exceptions import ForbiddenError, ParcelServerError, UnauthenticatedError
from app.services.identity_service import FirebaseIdentityService
from app.services.payment_gateway import StripePaymentGateway

logger = logging.getLogger(__name__)

# auto_error=False: a missing header is reported as our own
# 401 body instead of FastAPI's default 403
bearer_scheme = HTTPBearer(auto_error=False, description="Firebase ID token")


class AuthenticatedUser(BaseModel):
    """Identity claims of the caller, taken from a verified ID token."""
    uid: str
    email: Optional[str] = None
    claims: Dict[str, Any] = Field(default_factory=dict)


def get_identity_service(request: Request) -> FirebaseIdentityService:
    service = getattr(request.app.state, "identity_service", None)
    if service is None:
        raise ParcelServerError(
            message="Authentication service is not available.",
            context={"reason": "identity service not initialized"},
        )
    return service


def get_payment_gateway(request: Request) -> StripePaymentGateway:
    gateway = getattr(request.app.state, "payment_gateway", None)
    if gateway is None:
        raise ParcelServerError(
            message="Payment service is not available.",
            context={"reason": "payment gateway not initialized"},
        )
    return gateway


async def require_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    identity_service: FirebaseIdentityService = Depends(get_identity_service),
) -> AuthenticatedUser:
    """
    Authenticate the caller from the Authorization header.

    Raises:
        UnauthenticatedError (401): header absent or not "<scheme> <token>"
        ForbiddenError (403): the identity provider rejected the token
    """
    if credentials is not None:
        token = credentials.credentials
    else:
        # HTTPBearer drops other schemes; their token is still verified
        _, token = get_authorization_scheme_param(request.headers.get("Authorization"))
    token = token.strip()
    if not token:
        raise UnauthenticatedError()

    claims = await identity_service.verify_token(token)
    user = AuthenticatedUser(
        uid=str(claims.get("uid") or claims.get("sub") or ""),
        email=claims.get("email"),
        claims=claims,
    )
    request.state.user = user
    return user


def ensure_same_email(user: AuthenticatedUser, email: Optional[str]) -> str:
    """
    Resolve the email a caller may read data for.

    Returns the caller's own email when no filter was given; raises
    ForbiddenError when the filter names somebody else.
    """
    if not user.email:
        raise ForbiddenError(message="forbidden access", context={"reason": "token has no email"})
    if email is not None and email != user.email:
        logger.warning("User %s asked for data of another email", user.uid)
        raise ForbiddenError(message="forbidden access", context={"reason": "email mismatch"})
    return user.email
