"""
Parcel Server - User Service
=============================

What:  Registers a user on first sign-in.

Registration is "insert if absent":
    1. Look the email up; if present, report "already exists".
    2. Otherwise insert. The unique constraint on users.email settles a race
       with a concurrent registration: the losing insert raises
       IntegrityError, is rolled back, and is reported as "already exists".
"""

import logging
from typing import Union

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError
from app.models.user import User
from app.schemas.common import extra_fields
from app.schemas.user import UserAlreadyExists, UserCreate, UserRegistered

logger = logging.getLogger(__name__)


class UserService:

    async def register_user(
        self,
        db: AsyncSession,
        payload: UserCreate,
    ) -> Union[UserRegistered, UserAlreadyExists]:
        try:
            result = await db.execute(select(User.id).where(User.email == payload.email))
            if result.scalar_one_or_none() is not None:
                return UserAlreadyExists()

            user = User(email=payload.email, details=extra_fields(payload))
            db.add(user)
            await db.flush()
        except IntegrityError:
            # Lost the race against a concurrent registration of this email
            await db.rollback()
            logger.info("Concurrent registration for %s resolved as existing user", payload.email)
            return UserAlreadyExists()
        except SQLAlchemyError as e:
            logger.error("Error registering user: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to register user",
                context={"error_type": type(e).__name__},
            )

        logger.info("User %s registered", user.id)
        return UserRegistered(inserted_id=str(user.id))


user_service = UserService()
