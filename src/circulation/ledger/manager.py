"""Loan history ledger.

Records are only ever appended or closed, never deleted. Every method works
inside a session handed in by the caller and never commits or rolls back.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db.models import utc_timestamp
from .models import BorrowRecord

logger = logging.getLogger(__name__)


class MissingOpenRecordError(Exception):
    """A return found no open record and backfill is disabled."""

    def __init__(self, user_id: str, book_id: str):
        self.user_id = user_id
        self.book_id = book_id
        super().__init__(f"No open borrow record for user {user_id} and book {book_id}")


class LendingLedger:
    """Keeps the historical record of loans and their scores."""

    def __init__(self, backfill_missing: bool = True):
        """Initialize the ledger.

        Args:
            backfill_missing: On return without an open record, write an
                already-closed record instead of raising
        """
        self.backfill_missing = backfill_missing

    def record_borrow(
        self,
        session: Session,
        user_id: str,
        book_id: str,
        timestamp: datetime,
    ) -> BorrowRecord:
        """Append a new open record.

        Args:
            session: Active session
            user_id: Borrowing user ID
            book_id: Book ID
            timestamp: Moment of the borrow

        Returns:
            The flushed record
        """
        record = BorrowRecord(
            user_id=user_id,
            book_id=book_id,
            borrowed_at=utc_timestamp(timestamp),
        )
        session.add(record)
        session.flush()
        return record

    def find_open_record(
        self,
        session: Session,
        user_id: str,
        book_id: str,
    ) -> Optional[BorrowRecord]:
        """Find the latest open record for a user and book.

        Latest means greatest ``borrowed_at``; among equal timestamps the
        last inserted record wins.
        """
        stmt = (
            select(BorrowRecord)
            .where(
                BorrowRecord.user_id == user_id,
                BorrowRecord.book_id == book_id,
                BorrowRecord.returned_at.is_(None),
            )
            .order_by(BorrowRecord.borrowed_at.desc(), BorrowRecord.id.desc())
            .limit(1)
        )
        return session.execute(stmt).scalars().first()

    def record_return(
        self,
        session: Session,
        user_id: str,
        book_id: str,
        score: int,
        timestamp: datetime,
    ) -> BorrowRecord:
        """Close the open record for a user and book.

        Args:
            session: Active session
            user_id: Returning user ID
            book_id: Book ID
            score: Score the user gave the book
            timestamp: Moment of the return

        Returns:
            The closed (or backfilled) record

        Raises:
            MissingOpenRecordError: No open record and backfill is disabled
        """
        returned_at = utc_timestamp(timestamp)
        record = self.find_open_record(session, user_id, book_id)

        if record is None:
            if not self.backfill_missing:
                raise MissingOpenRecordError(user_id, book_id)
            logger.warning(
                "No open record for user %s and book %s; backfilling a closed record",
                user_id,
                book_id,
            )
            record = BorrowRecord(
                user_id=user_id,
                book_id=book_id,
                borrowed_at=returned_at,
                returned_at=returned_at,
                score=score,
            )
            session.add(record)
        else:
            record.returned_at = returned_at
            record.score = score

        session.flush()
        return record

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    def history_for_user(self, session: Session, user_id: str) -> list[BorrowRecord]:
        """All records for a user, oldest first."""
        return self._history(session, BorrowRecord.user_id == user_id)

    def history_for_book(self, session: Session, book_id: str) -> list[BorrowRecord]:
        """All records for a book, oldest first."""
        return self._history(session, BorrowRecord.book_id == book_id)

    def history_for_pair(
        self,
        session: Session,
        user_id: str,
        book_id: str,
    ) -> list[BorrowRecord]:
        """All records for a user and book, oldest first."""
        return self._history(
            session,
            BorrowRecord.user_id == user_id,
            BorrowRecord.book_id == book_id,
        )

    def all_records(self, session: Session) -> list[BorrowRecord]:
        """Every record in the ledger, oldest first."""
        return self._history(session)

    def _history(self, session: Session, *criteria) -> list[BorrowRecord]:
        stmt = (
            select(BorrowRecord)
            .where(*criteria)
            .order_by(BorrowRecord.borrowed_at, BorrowRecord.id)
        )
        return list(session.execute(stmt).scalars().all())
