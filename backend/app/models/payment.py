"""
Parcel Server - Payment SQLAlchemy Model
=========================================

What:  ORM model for the `payments` table, one row per successful payment.

parcel_id is stored as an opaque string with no foreign key: payments are
kept even if the parcel they paid for is later deleted.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import JSON, DateTime, Float, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Payment(Base):
    """Immutable payment record written by the payment flow."""

    __tablename__ = "payments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    parcel_id: Mapped[str] = mapped_column(String(64), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)

    # Stripe reports payment_method_types as a list; older clients send a string
    payment_method: Mapped[Any] = mapped_column(JSON, nullable=True)
    transaction_id: Mapped[str] = mapped_column(String(255), nullable=False)

    # Both representations are kept: the string for display, the native
    # timestamp for sorting
    paid_at_string: Mapped[str] = mapped_column(String(40), nullable=False)
    paid_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    details: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    __table_args__ = (
        Index("idx_payments_email", "email"),
        Index("idx_payments_paid_at", "paid_at"),
    )

    def __repr__(self) -> str:
        return f"<Payment(id={self.id}, parcel_id='{self.parcel_id}', amount={self.amount})>"
