"""
Parcel Server - Rider SQLAlchemy Model
=======================================

What:  ORM model for the `riders` table.

status is free text. "pending" (new application) and "active" (approved) are
the values the admin screens list by; any other value is stored as sent.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import JSON, DateTime, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

RIDER_STATUS_PENDING = "pending"
RIDER_STATUS_ACTIVE = "active"


class Rider(Base):
    """A delivery agent application / profile."""

    __tablename__ = "riders"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=RIDER_STATUS_PENDING,
        server_default=text(f"'{RIDER_STATUS_PENDING}'"),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    details: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    __table_args__ = (
        Index("idx_riders_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Rider(id={self.id}, status='{self.status}')>"
