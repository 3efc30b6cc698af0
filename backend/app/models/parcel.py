"""
Parcel Server - Parcel SQLAlchemy Model
========================================

What:  ORM model for the `parcels` table.
How:   Columns the API filters, sorts or updates on are typed columns; every
       other field the client sent is kept in the `details` JSON column and
       merged back into the document on the way out.

Indexes:
    idx_parcels_created_by_email: GET /parcels?email=... equality filter
    idx_parcels_created_at:       newest-first ordering of the listing
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import JSON, DateTime, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

PAYMENT_STATUS_UNPAID = "unpaid"
PAYMENT_STATUS_PAID = "paid"


class Parcel(Base):
    """
    A shipment record.

    Lifecycle:
        1. Created by POST /parcels (payment_status = 'unpaid' unless sent)
        2. Set to 'paid' by the payment flow, exactly once
        3. Removed by DELETE /parcels/{id}
    """

    __tablename__ = "parcels"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    created_by_email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        comment="Email of the user who booked the parcel",
    )

    payment_status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=PAYMENT_STATUS_UNPAID,
        server_default=text(f"'{PAYMENT_STATUS_UNPAID}'"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # Free-form shipment fields (sender, receiver, weight, type, cost, ...)
    details: Mapped[Dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )

    __table_args__ = (
        Index("idx_parcels_created_by_email", "created_by_email"),
        Index("idx_parcels_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Parcel(id={self.id}, created_by_email='{self.created_by_email}', "
            f"payment_status='{self.payment_status}')>"
        )
