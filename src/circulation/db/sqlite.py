"""SQLite database operations.

Handles database connection, session management, units of work, and the
user/book lookups the lending engine relies on.
"""

import threading
from contextlib import contextmanager, nullcontext
from pathlib import Path
from typing import Generator, Optional, Union

from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base, Book, User
from .schemas import BookCreate, UserCreate


class Database:
    """Database connection and operations manager."""

    def __init__(self, db_path: Union[str, Path], busy_timeout: float = 30.0):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file, or ":memory:"
            busy_timeout: Seconds a connection waits for a competing writer
        """
        self.db_path = Path(db_path)
        self._is_memory = str(db_path) == ":memory:"

        if not self._is_memory:
            self._ensure_directory()

        # For in-memory databases, use StaticPool to reuse the same connection
        # This ensures all sessions share the same in-memory database
        if self._is_memory:
            self.engine = create_engine(
                "sqlite:///:memory:",
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=False,
                connect_args={"check_same_thread": False, "timeout": busy_timeout},
            )
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)
        # Every session of an in-memory database shares one connection, so
        # only one of them may hold a transaction at a time
        self._lock = threading.RLock() if self._is_memory else nullcontext()

    def _ensure_directory(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def create_tables(self) -> None:
        """Create all database tables."""
        # Import lending models to register them with Base
        from ..inventory.models import CurrentBorrow  # noqa: F401
        from ..ledger.models import BorrowRecord  # noqa: F401

        Base.metadata.create_all(self.engine)

    def drop_tables(self) -> None:
        """Drop all database tables. Use with caution!"""
        Base.metadata.drop_all(self.engine)

    def dispose(self) -> None:
        """Close all pooled connections."""
        self.engine.dispose()

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session context manager."""
        with self._lock:
            session = self.SessionLocal()
            try:
                yield session
                session.commit()
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

    @contextmanager
    def transaction(self) -> Generator[Session, None, None]:
        """Open a unit of work that only persists what the caller commits.

        Nothing is committed on exit. Whatever is still pending when the
        block ends, whether by return, failure result, or exception, is
        rolled back before the session is closed.
        """
        with self._lock:
            session = self.SessionLocal()
            try:
                yield session
            finally:
                try:
                    if session.in_transaction():
                        session.rollback()
                finally:
                    session.close()

    # ========================================================================
    # User Operations
    # ========================================================================

    def create_user(self, user: UserCreate) -> User:
        """Create a new user record."""
        with self.get_session() as s:
            db_user = User(name=user.name)
            s.add(db_user)
            s.flush()
            s.refresh(db_user)
            s.expunge(db_user)
            return db_user

    def get_user(self, user_id: str, session: Optional[Session] = None) -> Optional[User]:
        """Get a user by ID."""

        def _get(s: Session) -> Optional[User]:
            return s.get(User, str(user_id))

        if session is not None:
            return _get(session)

        with self.get_session() as s:
            user = _get(s)
            if user:
                s.expunge(user)
            return user

    def list_users(self) -> list[User]:
        """List all users ordered by name."""
        with self.get_session() as s:
            users = s.execute(select(User).order_by(User.name, User.created_at)).scalars().all()
            for user in users:
                s.expunge(user)
            return list(users)

    # ========================================================================
    # Book Operations
    # ========================================================================

    def create_book(self, book: BookCreate) -> Book:
        """Create a new book record."""
        with self.get_session() as s:
            db_book = Book(name=book.name)
            s.add(db_book)
            s.flush()
            s.refresh(db_book)
            s.expunge(db_book)
            return db_book

    def get_book(self, book_id: str, session: Optional[Session] = None) -> Optional[Book]:
        """Get a book by ID."""

        def _get(s: Session) -> Optional[Book]:
            return s.get(Book, str(book_id))

        if session is not None:
            return _get(session)

        with self.get_session() as s:
            book = _get(s)
            if book:
                s.expunge(book)
            return book

    def list_books(self) -> list[Book]:
        """List all books ordered by name."""
        with self.get_session() as s:
            books = s.execute(select(Book).order_by(Book.name, Book.created_at)).scalars().all()
            for book in books:
                s.expunge(book)
            return list(books)
