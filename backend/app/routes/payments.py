"""
Parcel Server - Payment Route Handlers
=======================================

What:  Payment history, payment recording and Stripe payment intents.

Checkout sequence:
    POST /create-payment-intent  -> clientSecret (Stripe.js confirms the card)
    POST /payments               -> parcel marked paid + payment row, atomically
    GET  /payments               -> the signed-in user's own history
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import (
    AuthenticatedUser,
    ensure_same_email,
    get_payment_gateway,
    require_user,
)
from app.schemas.common import ErrorResponse
from app.schemas.payment import (
    PaymentCreate,
    PaymentDocument,
    PaymentIntentRequest,
    PaymentIntentResponse,
    PaymentRecorded,
)
from app.services.payment_gateway import StripePaymentGateway
from app.services.payment_service import payment_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Payments"])


@router.get(
    "/payments",
    response_model=List[PaymentDocument],
    responses={
        401: {"description": "Missing bearer token", "model": ErrorResponse},
        403: {"description": "Token rejected or email of another user", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="List the caller's payments",
    description=(
        "Newest first. `email`, when given, must be the caller's own email; "
        "without it the caller's own history is returned."
    ),
)
async def list_payments(
    email: Optional[str] = Query(default=None, description="Payer email; must match the token"),
    user: AuthenticatedUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[PaymentDocument]:
    owner_email = ensure_same_email(user, email)
    return await payment_service.list_payments(db=db, email=owner_email)


@router.post(
    "/payments",
    response_model=PaymentRecorded,
    status_code=201,
    responses={
        201: {"description": "Payment recorded", "model": PaymentRecorded},
        404: {"description": "Parcel not found or already paid", "model": ErrorResponse},
        500: {"description": "Server error; nothing was written", "model": ErrorResponse},
    },
    summary="Record a completed payment",
)
async def record_payment(
    payload: PaymentCreate,
    db: AsyncSession = Depends(get_db_session),
) -> PaymentRecorded:
    return await payment_service.record_payment(db=db, payload=payload)


@router.post(
    "/create-payment-intent",
    response_model=PaymentIntentResponse,
    responses={
        500: {"description": "Gateway rejected the request", "model": ErrorResponse},
        503: {"description": "Gateway circuit breaker open", "model": ErrorResponse},
    },
    summary="Create a Stripe payment intent",
    description="Returns the client secret Stripe.js needs to confirm a card payment.",
)
async def create_payment_intent(
    payload: PaymentIntentRequest,
    gateway: StripePaymentGateway = Depends(get_payment_gateway),
) -> PaymentIntentResponse:
    client_secret = await gateway.create_payment_intent(payload.amount_in_cent)
    return PaymentIntentResponse(client_secret=client_secret)
