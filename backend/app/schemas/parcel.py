"""
Parcel Server - Parcel Schemas
===============================

What:  Request and response contracts for /parcels.

Only the fields the server relies on are declared. Everything else the
client sends (sender, receiver, weight, parcel type, cost, ...) is accepted
as an extra field, stored, and returned unchanged.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from app.models.parcel import PAYMENT_STATUS_UNPAID

DOCUMENT_CONFIG = {"extra": "allow", "populate_by_name": True}


class ParcelCreate(BaseModel):
    """Body of POST /parcels."""
    created_by_email: str = Field(
        alias="createdByEmail",
        min_length=3,
        max_length=320,
        description="Email of the user booking the parcel",
    )
    payment_status: str = Field(
        default=PAYMENT_STATUS_UNPAID,
        alias="paymentStatus",
        max_length=50,
    )
    created_at: Optional[datetime] = Field(
        default=None,
        alias="createdAt",
        description="Booking time (ISO 8601). Set by the server when omitted.",
    )

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Stored as UTC; a value without an offset is taken to be UTC."""
        if v is None:
            return v
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    model_config = DOCUMENT_CONFIG


class ParcelDocument(BaseModel):
    """A stored parcel as returned by GET /parcels and GET /parcels/{id}."""
    id: str = Field(alias="_id")
    created_by_email: str = Field(alias="createdByEmail")
    payment_status: str = Field(alias="paymentStatus")
    created_at: datetime = Field(alias="createdAt")

    model_config = DOCUMENT_CONFIG
