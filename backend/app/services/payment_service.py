"""
Parcel Server - Payment Service
================================

What:  Records a completed payment and lists payment history.
Who:   Called by POST /payments and GET /payments.

Recording Flow (one transaction):
    ┌──────────────────────┐    ┌────────────────────┐    ┌──────────┐
    │ UPDATE parcels       │───▶│ INSERT payments    │───▶│  COMMIT  │
    │ SET paid WHERE id=?  │    │ (amount, txn, ...) │    └──────────┘
    │ AND not yet paid     │    └────────────────────┘
    └──────────────────────┘
        0 rows -> NotFoundError, nothing written
        any DB error -> ROLLBACK of both statements -> DatabaseError

    A payment row exists if and only if its parcel is marked paid.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import desc, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError, NotFoundError
from app.models.parcel import PAYMENT_STATUS_PAID, Parcel
from app.models.payment import Payment
from app.schemas.common import extra_fields
from app.schemas.payment import PaymentCreate, PaymentDocument, PaymentRecorded

logger = logging.getLogger(__name__)

PARCEL_NOT_PAYABLE = "parcel not found or already paid"


def iso_timestamp(moment: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a Z suffix."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class PaymentService:

    @staticmethod
    def to_document(payment: Payment) -> PaymentDocument:
        return PaymentDocument.model_validate(
            {
                **(payment.details or {}),
                "_id": str(payment.id),
                "parcelId": payment.parcel_id,
                "email": payment.email,
                "amount": payment.amount,
                "paymentMethod": payment.payment_method,
                "transactionId": payment.transaction_id,
                "paid_at_string": payment.paid_at_string,
                "paid_at": payment.paid_at,
            }
        )

    async def record_payment(self, db: AsyncSession, payload: PaymentCreate) -> PaymentRecorded:
        """
        Mark the parcel paid and insert the payment record atomically.

        Raises:
            NotFoundError: parcel id unknown, unparseable, or already paid (-> 404)
            DatabaseError: either write failed; both were rolled back (-> 500)
        """
        try:
            parcel_id = uuid.UUID(payload.parcel_id)
        except ValueError:
            raise NotFoundError(
                resource="parcel",
                resource_id=payload.parcel_id,
                message=PARCEL_NOT_PAYABLE,
            )

        try:
            result = await db.execute(
                update(Parcel)
                .where(Parcel.id == parcel_id, Parcel.payment_status != PAYMENT_STATUS_PAID)
                .values(payment_status=PAYMENT_STATUS_PAID)
                .execution_options(synchronize_session=False)
            )
            if not result.rowcount:
                raise NotFoundError(
                    resource="parcel",
                    resource_id=payload.parcel_id,
                    message=PARCEL_NOT_PAYABLE,
                )

            paid_at = datetime.now(timezone.utc)
            payment = Payment(
                parcel_id=payload.parcel_id,
                email=payload.email,
                amount=payload.amount,
                payment_method=payload.payment_method,
                transaction_id=payload.transaction_id,
                paid_at_string=iso_timestamp(paid_at),
                paid_at=paid_at,
                details=extra_fields(payload),
            )
            db.add(payment)
            await db.flush()
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(
                "Payment processing failed for parcel %s: %s",
                payload.parcel_id,
                str(e),
                exc_info=True,
            )
            raise DatabaseError(
                message="Failed to record payment",
                context={"parcel_id": payload.parcel_id, "error_type": type(e).__name__},
            )

        logger.info(
            "Payment %s recorded for parcel %s (txn=%s)",
            payment.id,
            payload.parcel_id,
            payload.transaction_id,
        )
        return PaymentRecorded(inserted_id=str(payment.id))

    async def list_payments(self, db: AsyncSession, email: str) -> List[PaymentDocument]:
        """Payment history of one payer, newest first."""
        query = (
            select(Payment)
            .where(Payment.email == email)
            .order_by(desc(Payment.paid_at), desc(Payment.id))
        )
        try:
            result = await db.execute(query)
            payments = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Error fetching payment history: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to get payments",
                context={"error_type": type(e).__name__},
            )
        return [self.to_document(payment) for payment in payments]


payment_service = PaymentService()
