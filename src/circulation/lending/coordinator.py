"""Borrow and return transitions.

Each request runs in its own unit of work. The coordinator is the only
place that commits; the inventory tracker and the ledger just read and
write through the session they are given.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from ..db.sqlite import Database
from ..inventory.tracker import InventoryTracker
from ..ledger.manager import LendingLedger
from ..ledger.schemas import BorrowRecordResponse
from .schemas import (
    BookStatusReport,
    HeldBook,
    LendingOutcome,
    LendingResult,
    PastLoan,
    UserProfile,
)
from .validation import validate_score

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Current time in UTC."""
    return datetime.now(timezone.utc)


class TransactionCoordinator:
    """Runs borrow and return requests as all-or-nothing units of work."""

    def __init__(
        self,
        db: Database,
        tracker: Optional[InventoryTracker] = None,
        ledger: Optional[LendingLedger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the coordinator.

        Args:
            db: Database providing units of work and user/book lookups
            tracker: Current-holder tracker
            ledger: Loan history ledger
            clock: Source of "now" for borrow and return timestamps
        """
        self.db = db
        self.tracker = tracker or InventoryTracker()
        self.ledger = ledger or LendingLedger()
        self.clock = clock or utc_now

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def borrow(self, user_id: str, book_id: str) -> LendingResult:
        """Hand a book to a user.

        Args:
            user_id: Borrowing user ID
            book_id: Book ID

        Returns:
            SUCCESS with the new open record, or USER_NOT_FOUND,
            BOOK_NOT_FOUND, ALREADY_BORROWED
        """
        user_id, book_id = str(user_id), str(book_id)

        with self.db.transaction() as session:
            if self.db.get_user(user_id, session=session) is None:
                return self._reject("borrow", LendingOutcome.USER_NOT_FOUND, user_id, book_id)
            if self.db.get_book(book_id, session=session) is None:
                return self._reject("borrow", LendingOutcome.BOOK_NOT_FOUND, user_id, book_id)
            if self.tracker.is_borrowed(session, book_id):
                return self._reject("borrow", LendingOutcome.ALREADY_BORROWED, user_id, book_id)

            now = self.clock()
            # A competing borrower may have claimed the book since the check
            if not self.tracker.mark_borrowed(session, user_id, book_id, now):
                return self._reject("borrow", LendingOutcome.ALREADY_BORROWED, user_id, book_id)

            record = self.ledger.record_borrow(session, user_id, book_id, now)
            response = BorrowRecordResponse.model_validate(record)
            session.commit()

        logger.info("User %s borrowed book %s", user_id, book_id)
        return LendingResult.success(response)

    def return_book(self, user_id: str, book_id: str, score: Any) -> LendingResult:
        """Take a book back from a user and record their score.

        Args:
            user_id: Returning user ID
            book_id: Book ID
            score: Score the user gives the book

        Returns:
            SUCCESS with the closed record, or INVALID_SCORE,
            USER_NOT_FOUND, BOOK_NOT_FOUND, NOT_BORROWED_BY_USER

        Raises:
            MissingOpenRecordError: If the user holds the book but the ledger
                has no open record for it and backfill is disabled. Nothing
                is committed.
        """
        user_id, book_id = str(user_id), str(book_id)

        validation = validate_score({"score": score})
        if not validation.ok:
            return self._reject(
                "return", LendingOutcome.INVALID_SCORE, user_id, book_id, validation.detail
            )

        with self.db.transaction() as session:
            if self.db.get_user(user_id, session=session) is None:
                return self._reject("return", LendingOutcome.USER_NOT_FOUND, user_id, book_id)
            if self.db.get_book(book_id, session=session) is None:
                return self._reject("return", LendingOutcome.BOOK_NOT_FOUND, user_id, book_id)
            if not self.tracker.holds(session, user_id, book_id):
                return self._reject(
                    "return", LendingOutcome.NOT_BORROWED_BY_USER, user_id, book_id
                )

            # Zero rows means a concurrent return got there first
            if not self.tracker.mark_returned(session, user_id, book_id):
                return self._reject(
                    "return", LendingOutcome.NOT_BORROWED_BY_USER, user_id, book_id
                )

            record = self.ledger.record_return(
                session, user_id, book_id, validation.score, self.clock()
            )
            response = BorrowRecordResponse.model_validate(record)
            session.commit()

        logger.info("User %s returned book %s with score %s", user_id, book_id, validation.score)
        return LendingResult.success(response)

    def _reject(
        self,
        action: str,
        outcome: LendingOutcome,
        user_id: str,
        book_id: str,
        detail: Optional[str] = None,
    ) -> LendingResult:
        logger.info(
            "Rejected %s of book %s by user %s: %s", action, book_id, user_id, outcome.value
        )
        return LendingResult.failure(outcome, detail)

    # -------------------------------------------------------------------------
    # Reports
    # -------------------------------------------------------------------------

    def describe_user(self, user_id: str) -> Optional[UserProfile]:
        """Get a user with the books they returned and the books they hold.

        Args:
            user_id: User ID

        Returns:
            UserProfile or None if the user does not exist
        """
        with self.db.transaction() as session:
            user = self.db.get_user(str(user_id), session=session)
            if user is None:
                return None

            past = []
            for record in self.ledger.history_for_user(session, user.id):
                if record.is_open:
                    continue
                book = self.db.get_book(record.book_id, session=session)
                past.append(
                    PastLoan(
                        book_id=record.book_id,
                        name=book.name if book else "",
                        score=record.score,
                        borrowed_at=record.borrowed_at,
                        returned_at=record.returned_at,
                    )
                )

            present = []
            for held in self.tracker.books_held_by(session, user.id):
                book = self.db.get_book(held.book_id, session=session)
                present.append(
                    HeldBook(
                        book_id=held.book_id,
                        name=book.name if book else "",
                        borrowed_at=held.borrowed_at,
                    )
                )

            return UserProfile(id=user.id, name=user.name, past=past, present=present)

    def describe_book(self, book_id: str) -> Optional[BookStatusReport]:
        """Get a book's current holder and loan summary.

        Args:
            book_id: Book ID

        Returns:
            BookStatusReport or None if the book does not exist
        """
        with self.db.transaction() as session:
            book = self.db.get_book(str(book_id), session=session)
            if book is None:
                return None

            holder_id = self.tracker.holder_of(session, book.id)
            holder = self.db.get_user(holder_id, session=session) if holder_id else None

            records = self.ledger.history_for_book(session, book.id)
            scores = [r.score for r in records if not r.is_open and r.score is not None]
            average = round(sum(scores) / len(scores), 2) if scores else None

            return BookStatusReport(
                id=book.id,
                name=book.name,
                holder_id=holder_id,
                holder_name=holder.name if holder else None,
                loan_count=len(records),
                average_score=average,
            )

    def history(
        self,
        user_id: Optional[str] = None,
        book_id: Optional[str] = None,
    ) -> list[BorrowRecordResponse]:
        """List ledger records, optionally narrowed to a user and/or book.

        Returns:
            Records oldest first
        """
        with self.db.transaction() as session:
            if user_id and book_id:
                records = self.ledger.history_for_pair(session, str(user_id), str(book_id))
            elif user_id:
                records = self.ledger.history_for_user(session, str(user_id))
            elif book_id:
                records = self.ledger.history_for_book(session, str(book_id))
            else:
                records = self.ledger.all_records(session)
            return [BorrowRecordResponse.model_validate(r) for r in records]
