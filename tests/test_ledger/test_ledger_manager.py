"""Tests for LendingLedger."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from circulation.db.models import Book, User
from circulation.db.sqlite import Database
from circulation.ledger.manager import LendingLedger, MissingOpenRecordError
from circulation.ledger.models import BorrowRecord
from circulation.ledger.schemas import BorrowRecordResponse

T0 = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)
T1 = T0 + timedelta(days=3)


class TestRecordBorrow:
    """Tests for opening records."""

    def test_record_borrow_creates_open_record(
        self, db: Database, ledger: LendingLedger, alice: User, dune: Book
    ):
        with db.transaction() as session:
            record = ledger.record_borrow(session, alice.id, dune.id, T0)
            session.commit()
            record_id = record.id

        with db.transaction() as session:
            record = session.get(BorrowRecord, record_id)
            assert record.user_id == alice.id
            assert record.book_id == dune.id
            assert record.borrowed_at == "2025-01-01T09:00:00.000000+00:00"
            assert record.returned_at is None
            assert record.score is None
            assert record.is_open

    def test_second_open_record_for_pair_rejected(
        self, db: Database, ledger: LendingLedger, alice: User, dune: Book
    ):
        with db.transaction() as session:
            ledger.record_borrow(session, alice.id, dune.id, T0)
            with pytest.raises(IntegrityError):
                ledger.record_borrow(session, alice.id, dune.id, T1)

    def test_response_schema(self, db: Database, ledger: LendingLedger, alice: User, dune: Book):
        with db.transaction() as session:
            record = ledger.record_borrow(session, alice.id, dune.id, T0)
            response = BorrowRecordResponse.model_validate(record)

        assert response.borrowed_at == T0
        assert response.is_open is True
        assert str(response.user_id) == alice.id


class TestFindOpenRecord:
    """Tests for locating the in-progress loan."""

    def test_none_without_records(
        self, db: Database, ledger: LendingLedger, alice: User, dune: Book
    ):
        with db.transaction() as session:
            assert ledger.find_open_record(session, alice.id, dune.id) is None

    def test_ignores_closed_records(
        self, db: Database, ledger: LendingLedger, alice: User, dune: Book
    ):
        with db.transaction() as session:
            ledger.record_borrow(session, alice.id, dune.id, T0)
            ledger.record_return(session, alice.id, dune.id, 7, T1)
            assert ledger.find_open_record(session, alice.id, dune.id) is None

    def test_ignores_other_pairs(
        self, db: Database, ledger: LendingLedger, alice: User, bob: User, dune: Book
    ):
        with db.transaction() as session:
            ledger.record_borrow(session, bob.id, dune.id, T0)
            assert ledger.find_open_record(session, alice.id, dune.id) is None

    def test_finds_open_among_closed(
        self, db: Database, ledger: LendingLedger, alice: User, dune: Book
    ):
        with db.transaction() as session:
            ledger.record_borrow(session, alice.id, dune.id, T0)
            ledger.record_return(session, alice.id, dune.id, 5, T0 + timedelta(hours=1))
            opened = ledger.record_borrow(session, alice.id, dune.id, T1)

            found = ledger.find_open_record(session, alice.id, dune.id)
            assert found.id == opened.id
            assert found.borrowed_at.startswith("2025-01-04")


class TestRecordReturn:
    """Tests for closing records."""

    def test_closes_open_record(
        self, db: Database, ledger: LendingLedger, alice: User, dune: Book
    ):
        with db.transaction() as session:
            opened = ledger.record_borrow(session, alice.id, dune.id, T0)
            closed = ledger.record_return(session, alice.id, dune.id, 9, T1)

            assert closed.id == opened.id
            assert closed.score == 9
            assert closed.returned_at == "2025-01-04T09:00:00.000000+00:00"
            assert not closed.is_open
            assert len(ledger.history_for_pair(session, alice.id, dune.id)) == 1

    def test_backfills_when_no_open_record(
        self, db: Database, ledger: LendingLedger, alice: User, dune: Book
    ):
        with db.transaction() as session:
            record = ledger.record_return(session, alice.id, dune.id, 4, T1)

            assert record.borrowed_at == record.returned_at
            assert record.score == 4
            assert len(ledger.history_for_pair(session, alice.id, dune.id)) == 1

    def test_raises_when_backfill_disabled(self, db: Database, alice: User, dune: Book):
        ledger = LendingLedger(backfill_missing=False)
        with db.transaction() as session:
            with pytest.raises(MissingOpenRecordError) as exc:
                ledger.record_return(session, alice.id, dune.id, 4, T1)

        assert exc.value.user_id == alice.id
        assert exc.value.book_id == dune.id

    def test_repeat_return_does_not_reclose(
        self, db: Database, ledger: LendingLedger, alice: User, dune: Book
    ):
        with db.transaction() as session:
            ledger.record_borrow(session, alice.id, dune.id, T0)
            first = ledger.record_return(session, alice.id, dune.id, 9, T1)
            second = ledger.record_return(session, alice.id, dune.id, 2, T1 + timedelta(hours=1))

            assert first.id != second.id
            assert first.score == 9


class TestHistory:
    """Tests for history queries."""

    def test_history_ordering_and_filters(
        self,
        db: Database,
        ledger: LendingLedger,
        alice: User,
        bob: User,
        dune: Book,
        emma: Book,
    ):
        with db.transaction() as session:
            ledger.record_borrow(session, alice.id, dune.id, T0)
            ledger.record_return(session, alice.id, dune.id, 8, T0 + timedelta(days=1))
            ledger.record_borrow(session, bob.id, dune.id, T0 + timedelta(days=2))
            ledger.record_borrow(session, alice.id, emma.id, T0 + timedelta(days=3))

            assert [r.user_id for r in ledger.history_for_book(session, dune.id)] == [
                alice.id,
                bob.id,
            ]
            assert [r.book_id for r in ledger.history_for_user(session, alice.id)] == [
                dune.id,
                emma.id,
            ]
            assert len(ledger.history_for_pair(session, bob.id, emma.id)) == 0
            assert len(ledger.all_records(session)) == 3
