"""
Parcel Server - Rider Schemas
==============================

What:  Request and response contracts for /riders.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from app.models.rider import RIDER_STATUS_PENDING

DOCUMENT_CONFIG = {"extra": "allow", "populate_by_name": True}


class RiderCreate(BaseModel):
    """Body of POST /riders. Profile fields (name, region, bike, ...) are extras."""
    status: str = Field(default=RIDER_STATUS_PENDING, min_length=1, max_length=50)

    model_config = DOCUMENT_CONFIG


class RiderStatusUpdate(BaseModel):
    """Body of PATCH /riders/{id}/status. Any non-empty value is accepted."""
    status: str = Field(min_length=1, max_length=50)


class RiderDocument(BaseModel):
    id: str = Field(alias="_id")
    status: str
    created_at: datetime = Field(alias="createdAt")

    model_config = DOCUMENT_CONFIG
