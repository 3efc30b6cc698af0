"""
Parcel Server - Rider Service
==============================

What:  Rider registration, status listings and status updates.

Statuses are free text. The listings only ask for "pending" (applications
awaiting review) and "active" (approved riders); no transition rules are
enforced.
"""

import logging
import uuid
from typing import List

from sqlalchemy import asc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError
from app.models.rider import RIDER_STATUS_ACTIVE, RIDER_STATUS_PENDING, Rider
from app.schemas.common import InsertResult, UpdateResult, extra_fields
from app.schemas.rider import RiderCreate, RiderDocument

logger = logging.getLogger(__name__)


class RiderService:

    @staticmethod
    def to_document(rider: Rider) -> RiderDocument:
        return RiderDocument.model_validate(
            {
                **(rider.details or {}),
                "_id": str(rider.id),
                "status": rider.status,
                "createdAt": rider.created_at,
            }
        )

    async def create_rider(self, db: AsyncSession, payload: RiderCreate) -> InsertResult:
        rider = Rider(status=payload.status, details=extra_fields(payload))
        try:
            db.add(rider)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Error inserting rider: %s", str(e), exc_info=True)
            raise DatabaseError(message="Failed to create rider")

        logger.info("Rider %s registered with status=%s", rider.id, rider.status)
        return InsertResult(inserted_id=str(rider.id))

    async def list_by_status(self, db: AsyncSession, status: str) -> List[RiderDocument]:
        query = (
            select(Rider)
            .where(Rider.status == status)
            .order_by(asc(Rider.created_at), asc(Rider.id))
        )
        try:
            result = await db.execute(query)
            riders = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Failed to load %s riders: %s", status, str(e))
            raise DatabaseError(
                message=f"Failed to load {status} riders",
                context={"status": status},
            )
        return [self.to_document(rider) for rider in riders]

    async def list_pending(self, db: AsyncSession) -> List[RiderDocument]:
        return await self.list_by_status(db, RIDER_STATUS_PENDING)

    async def list_active(self, db: AsyncSession) -> List[RiderDocument]:
        return await self.list_by_status(db, RIDER_STATUS_ACTIVE)

    async def update_status(
        self,
        db: AsyncSession,
        rider_id: uuid.UUID,
        status: str,
    ) -> UpdateResult:
        """
        Set a rider's status.

        matchedCount is 0 for an unknown id; modifiedCount is 0 when the rider
        already had this status.
        """
        try:
            rider = await db.get(Rider, rider_id)
            if rider is None:
                return UpdateResult(matched_count=0, modified_count=0)
            if rider.status == status:
                return UpdateResult(matched_count=1, modified_count=0)

            previous = rider.status
            rider.status = status
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to update rider %s status: %s", rider_id, str(e))
            raise DatabaseError(
                message="Failed to update rider status",
                context={"rider_id": str(rider_id)},
            )

        logger.info("Rider %s status %s -> %s", rider_id, previous, status)
        return UpdateResult(matched_count=1, modified_count=1)


rider_service = RiderService()
