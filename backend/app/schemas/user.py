"""
Parcel Server - User Schemas
=============================

What:  Request and response contracts for POST /users.
"""

from pydantic import BaseModel, Field

from app.schemas.common import ALIASED, InsertResult


class UserCreate(BaseModel):
    """Body of POST /users. Name, photo, role and timestamps are extras."""
    email: str = Field(min_length=3, max_length=320)

    model_config = {"extra": "allow", "populate_by_name": True}


class UserRegistered(InsertResult):
    """A new user row was created."""
    inserted: bool = Field(default=True)


class UserAlreadyExists(BaseModel):
    """The email was already registered; nothing was written."""
    message: str = Field(default="user already exists")
    inserted: bool = Field(default=False)

    model_config = ALIASED
