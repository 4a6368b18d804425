"""Loan history ledger module.

Provides functionality for:
- Opening a record when a book is borrowed
- Closing it with a score when the book comes back
- Reading loan history by user, book, or pair
"""

from .manager import LendingLedger, MissingOpenRecordError
from .models import BorrowRecord
from .schemas import BorrowRecordResponse

__all__ = [
    "LendingLedger",
    "MissingOpenRecordError",
    "BorrowRecord",
    "BorrowRecordResponse",
]
