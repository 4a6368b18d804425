"""Lending transitions module.

Provides functionality for:
- Borrowing a book, all-or-nothing across inventory and ledger
- Returning a book with a validated score
- Typed outcomes for every rejected request
- User and book loan summaries
"""

from .coordinator import TransactionCoordinator
from .schemas import (
    BookStatusReport,
    ErrorCategory,
    HeldBook,
    LendingOutcome,
    LendingResult,
    PastLoan,
    UserProfile,
)
from .validation import ScorePayload, ScoreValidation, validate_score

__all__ = [
    "TransactionCoordinator",
    "BookStatusReport",
    "ErrorCategory",
    "HeldBook",
    "LendingOutcome",
    "LendingResult",
    "PastLoan",
    "UserProfile",
    "ScorePayload",
    "ScoreValidation",
    "validate_score",
]
