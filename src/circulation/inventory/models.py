"""SQLAlchemy model for the current-holder relation.

Tables:
- current_borrows: One row per book that is out, naming its holder
"""

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base, utc_timestamp


class CurrentBorrow(Base):
    """CurrentBorrow model - who holds a book right now.

    ``book_id`` is the primary key, so the store itself refuses a second
    holder for the same book.
    """

    __tablename__ = "current_borrows"

    book_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("books.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    borrowed_at: Mapped[str] = mapped_column(String(32), default=lambda: utc_timestamp())

    def __repr__(self) -> str:
        return f"<CurrentBorrow(book_id={self.book_id}, user_id={self.user_id})>"
