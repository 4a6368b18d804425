"""Concurrent borrow and return requests against a shared database."""

import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor

from sqlalchemy import func, select

from circulation.db.models import Book, User
from circulation.db.schemas import BookCreate, UserCreate
from circulation.db.sqlite import Database
from circulation.inventory.models import CurrentBorrow
from circulation.lending.coordinator import TransactionCoordinator
from circulation.lending.schemas import LendingOutcome


def run_together(count: int, action) -> list:
    """Start ``count`` calls of ``action(i)`` as close to simultaneously as possible."""
    barrier = threading.Barrier(count)

    def task(i):
        barrier.wait()
        return action(i)

    with ThreadPoolExecutor(max_workers=count) as pool:
        return list(pool.map(task, range(count)))


def holder_rows(db: Database, book_id: str) -> int:
    with db.get_session() as session:
        return session.execute(
            select(func.count()).select_from(CurrentBorrow).where(CurrentBorrow.book_id == book_id)
        ).scalar()


class TestConcurrentBorrow:
    """Only one of several simultaneous borrowers may win a book."""

    def test_two_borrowers_one_winner(
        self, coordinator: TransactionCoordinator, db: Database, alice: User, bob: User, dune: Book
    ):
        users = [alice.id, bob.id]
        results = run_together(2, lambda i: coordinator.borrow(users[i], dune.id))

        outcomes = Counter(r.outcome for r in results)
        assert outcomes == {
            LendingOutcome.SUCCESS: 1,
            LendingOutcome.ALREADY_BORROWED: 1,
        }
        assert holder_rows(db, dune.id) == 1

        winner = next(r for r in results if r.ok)
        assert len(coordinator.history(book_id=dune.id)) == 1
        assert coordinator.describe_book(dune.id).holder_id == winner.record.user_id

    def test_many_borrowers_one_winner(
        self, coordinator: TransactionCoordinator, db: Database, dune: Book
    ):
        users = [db.create_user(UserCreate(name=f"Reader {i}")).id for i in range(8)]

        results = run_together(len(users), lambda i: coordinator.borrow(users[i], dune.id))

        assert sum(1 for r in results if r.ok) == 1
        assert all(
            r.outcome == LendingOutcome.ALREADY_BORROWED for r in results if not r.ok
        )
        assert holder_rows(db, dune.id) == 1
        assert len(coordinator.history(book_id=dune.id)) == 1

    def test_different_books_do_not_conflict(
        self,
        coordinator: TransactionCoordinator,
        db: Database,
        alice: User,
        bob: User,
        dune: Book,
        emma: Book,
    ):
        pairs = [(alice.id, dune.id), (bob.id, emma.id)]
        results = run_together(2, lambda i: coordinator.borrow(*pairs[i]))

        assert all(r.ok for r in results)
        assert holder_rows(db, dune.id) == 1
        assert holder_rows(db, emma.id) == 1

    def test_in_memory_database_one_winner(self, memory_db: Database):
        coordinator = TransactionCoordinator(memory_db)
        users = [memory_db.create_user(UserCreate(name=f"Reader {i}")).id for i in range(4)]

        for round_ in range(10):
            book_id = memory_db.create_book(BookCreate(name=f"Book {round_}")).id
            results = run_together(len(users), lambda i: coordinator.borrow(users[i], book_id))

            assert sum(1 for r in results if r.ok) == 1
            assert all(
                r.outcome == LendingOutcome.ALREADY_BORROWED for r in results if not r.ok
            )
            assert holder_rows(memory_db, book_id) == 1
            assert len(coordinator.history(book_id=book_id)) == 1


class TestConcurrentReturn:
    """A loan can only be closed once."""

    def test_double_return_closes_once(
        self, coordinator: TransactionCoordinator, db: Database, alice: User, dune: Book
    ):
        assert coordinator.borrow(alice.id, dune.id).ok

        results = run_together(2, lambda i: coordinator.return_book(alice.id, dune.id, 5 + i))

        outcomes = Counter(r.outcome for r in results)
        assert outcomes == {
            LendingOutcome.SUCCESS: 1,
            LendingOutcome.NOT_BORROWED_BY_USER: 1,
        }

        records = coordinator.history(user_id=alice.id, book_id=dune.id)
        assert len(records) == 1
        winner = next(r for r in results if r.ok)
        assert records[0].score == winner.record.score
        assert holder_rows(db, dune.id) == 0
