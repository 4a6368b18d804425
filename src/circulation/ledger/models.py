"""SQLAlchemy model for loan history.

Tables:
- borrow_records: One row per loan, open until the book comes back
"""

from typing import Optional

from sqlalchemy import ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base


class BorrowRecord(Base):
    """BorrowRecord model - one loan of one book to one user.

    ``id`` grows with every insert and breaks ties between records that
    share a ``borrowed_at``.
    """

    __tablename__ = "borrow_records"
    __table_args__ = (
        Index("ix_borrow_records_pair", "user_id", "book_id"),
        # At most one open record per (user, book)
        Index(
            "uq_borrow_records_open",
            "user_id",
            "book_id",
            unique=True,
            sqlite_where=text("returned_at IS NULL"),
            postgresql_where=text("returned_at IS NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    book_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("books.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # ISO timestamps (UTC)
    borrowed_at: Mapped[str] = mapped_column(String(32), nullable=False)
    returned_at: Mapped[Optional[str]] = mapped_column(String(32))

    score: Mapped[Optional[int]] = mapped_column(Integer)

    def __repr__(self) -> str:
        return (
            f"<BorrowRecord(id={self.id}, user_id={self.user_id}, "
            f"book_id={self.book_id}, open={self.is_open})>"
        )

    @property
    def is_open(self) -> bool:
        """Check if the loan is still in progress."""
        return self.returned_at is None
