"""Pytest configuration and shared fixtures.

This module provides fixtures for testing the circulation package,
including file-backed and in-memory databases, seeded users and books,
and a controllable clock.
"""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator

import pytest

from circulation.config import reset_config
from circulation.db.models import Book, User
from circulation.db.schemas import BookCreate, UserCreate
from circulation.db.sqlite import Database
from circulation.inventory.tracker import InventoryTracker
from circulation.ledger.manager import LendingLedger
from circulation.lending.coordinator import TransactionCoordinator


T0 = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture(scope="function")
def temp_db_path() -> Generator[Path, None, None]:
    """Create a temporary database file path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)
    yield db_path
    # Cleanup
    if db_path.exists():
        db_path.unlink()


@pytest.fixture(scope="function")
def db(temp_db_path: Path) -> Generator[Database, None, None]:
    """Create a file-backed test database."""
    reset_config()
    os.environ["CIRCULATION_DB_PATH"] = str(temp_db_path)

    database = Database(str(temp_db_path))
    database.create_tables()
    yield database

    # Cleanup
    database.dispose()
    reset_config()
    if "CIRCULATION_DB_PATH" in os.environ:
        del os.environ["CIRCULATION_DB_PATH"]


@pytest.fixture
def memory_db() -> Database:
    """Create an in-memory database for testing."""
    database = Database(":memory:")
    database.create_tables()
    return database


# ============================================================================
# Component Fixtures
# ============================================================================


@pytest.fixture
def clock() -> FakeClock:
    """A clock frozen at T0."""
    return FakeClock()


@pytest.fixture
def tracker() -> InventoryTracker:
    return InventoryTracker()


@pytest.fixture
def ledger() -> LendingLedger:
    return LendingLedger()


@pytest.fixture
def coordinator(db: Database, clock: FakeClock) -> TransactionCoordinator:
    """Coordinator over the file-backed database with a fake clock."""
    return TransactionCoordinator(db, clock=clock)


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def alice(db: Database) -> User:
    return db.create_user(UserCreate(name="Alice"))


@pytest.fixture
def bob(db: Database) -> User:
    return db.create_user(UserCreate(name="Bob"))


@pytest.fixture
def dune(db: Database) -> Book:
    return db.create_book(BookCreate(name="Dune"))


@pytest.fixture
def emma(db: Database) -> Book:
    return db.create_book(BookCreate(name="Emma"))
