"""Pydantic schemas for loan history."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class BorrowRecordResponse(BaseModel):
    """Schema for borrow record responses."""

    id: int
    user_id: UUID
    book_id: UUID
    borrowed_at: datetime
    returned_at: Optional[datetime]
    score: Optional[int]
    is_open: bool

    model_config = {"from_attributes": True}
