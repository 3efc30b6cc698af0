"""
Parcel Server - Parcel Service
===============================

What:  Create, read, list and delete parcels.
How:   Stateless service; every call receives the request's AsyncSession.
       SQLAlchemy failures are logged and re-raised as DatabaseError.

Document mapping:
    A stored parcel is returned as the client's original fields (the JSON
    `details` column) overlaid with the server-owned columns:
    _id, createdByEmail, paymentStatus, createdAt.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import delete, desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError, NotFoundError
from app.models.parcel import Parcel
from app.schemas.common import DeleteResult, InsertResult, extra_fields
from app.schemas.parcel import ParcelCreate, ParcelDocument

logger = logging.getLogger(__name__)


class ParcelService:
    """
    Business logic for parcel operations.

    Responsibilities:
        - create_parcel(): insert one parcel
        - get_parcel(): single lookup, NotFoundError when absent
        - list_parcels(): optional creator filter, newest first
        - delete_parcel(): delete by id, reporting 0 or 1
    """

    @staticmethod
    def to_document(parcel: Parcel) -> ParcelDocument:
        created_at = parcel.created_at
        if created_at is not None and created_at.tzinfo is None:
            # SQLite hands back naive values; they were written as UTC
            created_at = created_at.replace(tzinfo=timezone.utc)
        return ParcelDocument.model_validate(
            {
                **(parcel.details or {}),
                "_id": str(parcel.id),
                "createdByEmail": parcel.created_by_email,
                "paymentStatus": parcel.payment_status,
                "createdAt": created_at,
            }
        )

    async def create_parcel(self, db: AsyncSession, payload: ParcelCreate) -> InsertResult:
        parcel = Parcel(
            created_by_email=payload.created_by_email,
            payment_status=payload.payment_status,
            created_at=payload.created_at or datetime.now(timezone.utc),
            details=extra_fields(payload),
        )
        try:
            db.add(parcel)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Error inserting parcel: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to create parcel",
                context={"error_type": type(e).__name__},
            )

        logger.info("Parcel %s created by %s", parcel.id, parcel.created_by_email)
        return InsertResult(inserted_id=str(parcel.id))

    async def get_parcel(self, db: AsyncSession, parcel_id: uuid.UUID) -> ParcelDocument:
        """
        Raises:
            NotFoundError: no parcel with this id (-> 404)
            DatabaseError: query failed (-> 500)
        """
        try:
            parcel = await db.get(Parcel, parcel_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching parcel %s: %s", parcel_id, str(e))
            raise DatabaseError(
                message="Failed to fetch parcel",
                context={"parcel_id": str(parcel_id)},
            )

        if parcel is None:
            raise NotFoundError(resource="parcel", message="Parcel not found", resource_id=str(parcel_id))
        return self.to_document(parcel)

    async def list_parcels(
        self,
        db: AsyncSession,
        email: Optional[str] = None,
    ) -> List[ParcelDocument]:
        """
        List parcels newest first, optionally only those booked by `email`.

        Query plan:
            SELECT * FROM parcels [WHERE created_by_email = :email]
            ORDER BY created_at DESC
        """
        query = select(Parcel)
        if email:
            query = query.where(Parcel.created_by_email == email)
        query = query.order_by(desc(Parcel.created_at), desc(Parcel.id))

        try:
            result = await db.execute(query)
            parcels = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Error fetching parcels: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to get parcels",
                context={"error_type": type(e).__name__},
            )

        return [self.to_document(parcel) for parcel in parcels]

    async def delete_parcel(self, db: AsyncSession, parcel_id: uuid.UUID) -> DeleteResult:
        """Deleting an unknown id is not an error; it reports deletedCount=0."""
        try:
            result = await db.execute(delete(Parcel).where(Parcel.id == parcel_id))
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Error deleting parcel %s: %s", parcel_id, str(e))
            raise DatabaseError(
                message="Failed to delete parcel",
                context={"parcel_id": str(parcel_id)},
            )

        deleted = result.rowcount or 0
        if deleted:
            logger.info("Parcel %s deleted", parcel_id)
        return DeleteResult(deleted_count=deleted)


parcel_service = ParcelService()
