"""
Parcel Server - Payment Schemas
================================

What:  Contracts for POST/GET /payments and POST /create-payment-intent.

Flow seen by the web client:
    1. POST /create-payment-intent {amountInCent} -> {clientSecret}
    2. Client confirms the card payment with Stripe.js using clientSecret
    3. POST /payments {parcelId, email, amount, paymentMethod, transactionId}
       -> parcel marked paid + payment recorded
"""

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from app.schemas.common import ALIASED


class PaymentCreate(BaseModel):
    """Body of POST /payments."""
    parcel_id: str = Field(alias="parcelId", min_length=1, max_length=64)
    email: str = Field(min_length=3, max_length=320)
    amount: float = Field(ge=0, description="Amount paid, in major currency units")
    payment_method: Optional[Union[str, List[str]]] = Field(default=None, alias="paymentMethod")
    transaction_id: str = Field(alias="transactionId", min_length=1, max_length=255)

    model_config = {"extra": "allow", "populate_by_name": True}


class PaymentDocument(BaseModel):
    """A stored payment as returned by GET /payments."""
    id: str = Field(alias="_id")
    parcel_id: str = Field(alias="parcelId")
    email: str
    amount: float
    payment_method: Optional[Union[str, List[str]]] = Field(default=None, alias="paymentMethod")
    transaction_id: str = Field(alias="transactionId")
    paid_at_string: str
    paid_at: datetime

    model_config = {"extra": "allow", "populate_by_name": True}


class PaymentRecorded(BaseModel):
    """Response of POST /payments (HTTP 201)."""
    message: str = Field(default="payment recorded and parcel marked as paid")
    inserted_id: str = Field(alias="insertedId")

    model_config = ALIASED


class PaymentIntentRequest(BaseModel):
    """
    Body of POST /create-payment-intent.

    The amount is not range-checked here: Stripe's own validation message
    ("Amount must be at least 50 cents", ...) is what the client displays.
    """
    amount_in_cent: int = Field(alias="amountInCent", description="Amount in the smallest currency unit")

    model_config = ALIASED


class PaymentIntentResponse(BaseModel):
    client_secret: str = Field(alias="clientSecret")

    model_config = ALIASED
