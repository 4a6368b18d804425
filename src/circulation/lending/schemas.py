"""Pydantic schemas for lending results and reports."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from ..ledger.schemas import BorrowRecordResponse


class ErrorCategory(str, Enum):
    """Broad family of a failed lending request."""

    NOT_FOUND = "not_found"  # Missing user or book
    CONFLICT = "conflict"  # Well-formed but violates a holding invariant
    VALIDATION = "validation"  # Malformed input, caught before any write


class LendingOutcome(str, Enum):
    """Outcome of a borrow or return request."""

    SUCCESS = "success"
    USER_NOT_FOUND = "user_not_found"
    BOOK_NOT_FOUND = "book_not_found"
    ALREADY_BORROWED = "already_borrowed"
    NOT_BORROWED_BY_USER = "not_borrowed_by_user"
    INVALID_SCORE = "invalid_score"

    @property
    def category(self) -> Optional[ErrorCategory]:
        """Error family, or None for success."""
        return _CATEGORIES.get(self)


_CATEGORIES = {
    LendingOutcome.USER_NOT_FOUND: ErrorCategory.NOT_FOUND,
    LendingOutcome.BOOK_NOT_FOUND: ErrorCategory.NOT_FOUND,
    LendingOutcome.ALREADY_BORROWED: ErrorCategory.CONFLICT,
    LendingOutcome.NOT_BORROWED_BY_USER: ErrorCategory.CONFLICT,
    LendingOutcome.INVALID_SCORE: ErrorCategory.VALIDATION,
}

_MESSAGES = {
    LendingOutcome.USER_NOT_FOUND: "User not found",
    LendingOutcome.BOOK_NOT_FOUND: "Book not found",
    LendingOutcome.ALREADY_BORROWED: "This book is currently borrowed by another user",
    LendingOutcome.NOT_BORROWED_BY_USER: (
        "This book has not been borrowed by the user or has already been returned"
    ),
    LendingOutcome.INVALID_SCORE: "Invalid score",
}


class LendingResult(BaseModel):
    """Result of a borrow or return request."""

    outcome: LendingOutcome
    detail: Optional[str] = None
    record: Optional[BorrowRecordResponse] = None

    @property
    def ok(self) -> bool:
        """Check if the request succeeded."""
        return self.outcome == LendingOutcome.SUCCESS

    @property
    def message(self) -> str:
        """Human-readable description of a failure."""
        if self.detail:
            return self.detail
        return _MESSAGES.get(self.outcome, self.outcome.value)

    @classmethod
    def success(cls, record: BorrowRecordResponse) -> "LendingResult":
        return cls(outcome=LendingOutcome.SUCCESS, record=record)

    @classmethod
    def failure(cls, outcome: LendingOutcome, detail: Optional[str] = None) -> "LendingResult":
        return cls(outcome=outcome, detail=detail)


class PastLoan(BaseModel):
    """A returned book in a user's profile."""

    book_id: UUID
    name: str
    score: Optional[int]
    borrowed_at: datetime
    returned_at: datetime


class HeldBook(BaseModel):
    """A book a user holds right now."""

    book_id: UUID
    name: str
    borrowed_at: datetime


class UserProfile(BaseModel):
    """A user together with past and present loans."""

    id: UUID
    name: str
    past: list[PastLoan]
    present: list[HeldBook]


class BookStatusReport(BaseModel):
    """A book's holder and loan summary."""

    id: UUID
    name: str
    holder_id: Optional[UUID]
    holder_name: Optional[str]
    loan_count: int
    average_score: Optional[float]

    @property
    def is_available(self) -> bool:
        """Check if nobody holds the book."""
        return self.holder_id is None
