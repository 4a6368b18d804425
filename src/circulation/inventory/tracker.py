"""Current-holder bookkeeping.

The tracker reads and writes ``current_borrows`` inside a session handed
to it by the caller. It never commits or rolls back.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, func, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db.models import utc_timestamp
from .models import CurrentBorrow

logger = logging.getLogger(__name__)


class InventoryTracker:
    """Tracks which user currently holds which book."""

    def is_borrowed(self, session: Session, book_id: str) -> bool:
        """Check whether anyone holds a book.

        Args:
            session: Active session
            book_id: Book ID

        Returns:
            True if a current-borrow row exists for the book
        """
        count = session.execute(
            select(func.count()).select_from(CurrentBorrow).where(CurrentBorrow.book_id == book_id)
        ).scalar()
        return bool(count)

    def holds(self, session: Session, user_id: str, book_id: str) -> bool:
        """Check whether a specific user holds a book."""
        return self.holder_of(session, book_id) == user_id

    def holder_of(self, session: Session, book_id: str) -> Optional[str]:
        """Get the ID of the user holding a book, if any."""
        return session.execute(
            select(CurrentBorrow.user_id).where(CurrentBorrow.book_id == book_id)
        ).scalar_one_or_none()

    def books_held_by(self, session: Session, user_id: str) -> list[CurrentBorrow]:
        """List the current-borrow rows for a user, oldest first."""
        stmt = (
            select(CurrentBorrow)
            .where(CurrentBorrow.user_id == user_id)
            .order_by(CurrentBorrow.borrowed_at)
        )
        return list(session.execute(stmt).scalars().all())

    def mark_borrowed(
        self,
        session: Session,
        user_id: str,
        book_id: str,
        borrowed_at: Optional[datetime] = None,
    ) -> bool:
        """Record that a user now holds a book.

        The insert goes straight to the store so its primary key on
        ``book_id`` decides between competing borrowers.

        Args:
            session: Active session
            user_id: Borrowing user ID
            book_id: Book ID
            borrowed_at: Moment of the borrow (default: now)

        Returns:
            True if the row was written, False if the book already has a holder
        """
        try:
            session.execute(
                insert(CurrentBorrow).values(
                    book_id=book_id,
                    user_id=user_id,
                    borrowed_at=utc_timestamp(borrowed_at),
                )
            )
        except IntegrityError:
            logger.warning("Book %s already has a holder; rejected borrow by %s", book_id, user_id)
            return False
        return True

    def mark_returned(self, session: Session, user_id: str, book_id: str) -> bool:
        """Remove the current-borrow row for a user and book.

        Returns:
            True if a row was deleted, False if the user did not hold the book
        """
        result = session.execute(
            delete(CurrentBorrow).where(
                CurrentBorrow.book_id == book_id,
                CurrentBorrow.user_id == user_id,
            )
        )
        return result.rowcount > 0
