"""
Parcel Server - Rider Route Handlers
=====================================

What:  Rider applications, pending/active listings and status changes.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.schemas.common import ErrorResponse, InsertResult, UpdateResult
from app.schemas.rider import RiderCreate, RiderDocument, RiderStatusUpdate
from app.services.rider_service import rider_service

router = APIRouter(prefix="/riders", tags=["Riders"])


@router.get(
    "/pending",
    response_model=List[RiderDocument],
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List riders awaiting approval",
)
async def list_pending_riders(
    db: AsyncSession = Depends(get_db_session),
) -> List[RiderDocument]:
    return await rider_service.list_pending(db)


@router.get(
    "/active",
    response_model=List[RiderDocument],
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List approved riders",
)
async def list_active_riders(
    db: AsyncSession = Depends(get_db_session),
) -> List[RiderDocument]:
    return await rider_service.list_active(db)


@router.post(
    "",
    response_model=InsertResult,
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="Submit a rider application",
    description="`status` defaults to `pending`.",
)
async def create_rider(
    payload: RiderCreate,
    db: AsyncSession = Depends(get_db_session),
) -> InsertResult:
    return await rider_service.create_rider(db=db, payload=payload)


@router.patch(
    "/{rider_id}/status",
    response_model=UpdateResult,
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="Set a rider's status",
    description="An unknown ID is reported as `matchedCount: 0`, not as an error.",
)
async def update_rider_status(
    rider_id: UUID,
    payload: RiderStatusUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> UpdateResult:
    return await rider_service.update_status(db=db, rider_id=rider_id, status=payload.status)
