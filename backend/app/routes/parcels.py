"""
Parcel Server - Parcel Route Handlers
======================================

What:  /parcels collection and item endpoints.
How:   Thin handlers; ParcelService does the work against the request's
       session. Only the listing requires a signed-in caller.

Invalid UUIDs in the path return 422 Unprocessable Entity (FastAPI default).
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import AuthenticatedUser, require_user
from app.schemas.common import DeleteResult, ErrorResponse, InsertResult
from app.schemas.parcel import ParcelCreate, ParcelDocument
from app.services.parcel_service import parcel_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/parcels", tags=["Parcels"])


@router.get(
    "",
    response_model=List[ParcelDocument],
    responses={
        401: {"description": "Missing bearer token", "model": ErrorResponse},
        403: {"description": "Token rejected", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="List parcels",
    description="Newest first. Pass `email` to list only the parcels booked by that user.",
)
async def list_parcels(
    email: Optional[str] = Query(default=None, description="Filter by createdByEmail"),
    user: AuthenticatedUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[ParcelDocument]:
    logger.debug("User %s listing parcels (email=%s)", user.uid, email)
    return await parcel_service.list_parcels(db=db, email=email)


@router.get(
    "/{parcel_id}",
    response_model=ParcelDocument,
    responses={
        404: {"description": "Parcel not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Get a single parcel by ID",
)
async def get_parcel(
    parcel_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> ParcelDocument:
    return await parcel_service.get_parcel(db=db, parcel_id=parcel_id)


@router.post(
    "",
    response_model=InsertResult,
    status_code=201,
    responses={
        201: {"description": "Parcel booked", "model": InsertResult},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Book a parcel",
    description=(
        "Stores the parcel exactly as sent. `paymentStatus` defaults to "
        "`unpaid` and `createdAt` to the current time."
    ),
)
async def create_parcel(
    payload: ParcelCreate,
    db: AsyncSession = Depends(get_db_session),
) -> InsertResult:
    return await parcel_service.create_parcel(db=db, payload=payload)


@router.delete(
    "/{parcel_id}",
    response_model=DeleteResult,
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="Delete a parcel",
    description="Reports `deletedCount: 0` when no parcel has this ID.",
)
async def delete_parcel(
    parcel_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> DeleteResult:
    return await parcel_service.delete_parcel(db=db, parcel_id=parcel_id)
