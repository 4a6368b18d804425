"""SQLAlchemy ORM models for the lending store.

Tables:
- users: People who borrow books
- books: Lendable books

The lending tables live with the components that own them
(``inventory.models`` and ``ledger.models``).
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def generate_uuid() -> str:
    """Generate a UUID string for primary keys."""
    return str(uuid4())


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """Render a moment as a sortable ISO-8601 UTC string.

    Microseconds are always included so that string order matches time order.
    """
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")


class User(Base):
    """User model - someone who can hold books."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)

    created_at: Mapped[str] = mapped_column(String(32), default=lambda: utc_timestamp())

    def __repr__(self) -> str:
        return f"<User(id={self.id}, name='{self.name}')>"


class Book(Base):
    """Book model - a single lendable copy."""

    __tablename__ = "books"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)

    created_at: Mapped[str] = mapped_column(String(32), default=lambda: utc_timestamp())

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, name='{self.name}')>"
