"""
Parcel Server - User Route Handlers
====================================

What:  POST /users, called by the web client after every sign-in.
       The first call for an email creates the user; later calls are no-ops.
"""

from typing import Union

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.schemas.common import ErrorResponse
from app.schemas.user import UserAlreadyExists, UserCreate, UserRegistered
from app.services.user_service import user_service

router = APIRouter(tags=["Users"])


@router.post(
    "/users",
    response_model=Union[UserRegistered, UserAlreadyExists],
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="Register a user if the email is new",
)
async def register_user(
    payload: UserCreate,
    db: AsyncSession = Depends(get_db_session),
) -> Union[UserRegistered, UserAlreadyExists]:
    return await user_service.register_user(db=db, payload=payload)
