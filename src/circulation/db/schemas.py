"""Pydantic schemas for users and books."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


# ============================================================================
# Users
# ============================================================================


class UserBase(BaseModel):
    """Base user fields."""

    name: str = Field(..., min_length=1, max_length=200)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Reject names that are only whitespace."""
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


class UserCreate(UserBase):
    """Schema for creating a user."""

    pass


class UserResponse(UserBase):
    """Schema for user responses."""

    id: UUID
    created_at: datetime

    model_config = {"from_attributes": True}


# ============================================================================
# Books
# ============================================================================


class BookBase(BaseModel):
    """Base book fields."""

    name: str = Field(..., min_length=1, max_length=200)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Reject names that are only whitespace."""
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


class BookCreate(BookBase):
    """Schema for creating a book."""

    pass


class BookResponse(BookBase):
    """Schema for book responses."""

    id: UUID
    created_at: datetime

    model_config = {"from_attributes": True}
