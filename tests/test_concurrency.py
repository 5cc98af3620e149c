"""
tests/test_concurrency.py — Per-user Serialization Tests
=========================================================

Concurrent credits, scans and awards for one user against a file-backed
SQLite database, one connection per thread.  Lost updates or quota
over-admission would show up as wrong totals here.  The statement-shape
tests at the bottom check that each write is a single UPDATE.
"""

from __future__ import annotations

import re
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, date, datetime, timedelta

import pytest
from conftest import load_user, make_user
from sqlalchemy import event
from sqlalchemy.orm import Session

from ecoreward.errors import InsufficientPointsError, QuotaExceededError
from ecoreward.services import balance_service, quota_service, reward_service

NOW = datetime(2026, 3, 10, 9, 30, tzinfo=UTC)
TODAY = date(2026, 3, 10)


def _run_parallel(fn, count: int) -> list:
    """Run *fn* *count* times across threads; return results or exceptions."""
    def _call(_):
        try:
            return fn()
        except Exception as exc:  # collected and asserted on by the test
            return exc

    with ThreadPoolExecutor(max_workers=count) as pool:
        return list(pool.map(_call, range(count)))


class TestConcurrentCredits:
    def test_two_credits_never_lose_an_update(self, file_engine):
        """Balance 10 + two concurrent +1 credits → 12, never 11."""
        make_user(file_engine, points=10)

        results = _run_parallel(
            lambda: balance_service.credit_balance(file_engine, "user-1", 1), 2
        )

        assert sorted(results) == [11, 12]
        assert balance_service.get_balance(file_engine, "user-1") == 12

    def test_many_credits(self, file_engine):
        make_user(file_engine, points=0)

        _run_parallel(lambda: balance_service.credit_balance(file_engine, "user-1", 5), 16)

        assert balance_service.get_balance(file_engine, "user-1") == 80


class TestConcurrentScans:
    def test_exactly_limit_scans_admitted(self, file_engine):
        """Limit L=3 with K=10 concurrent consumes → 3 accepted, 7 QuotaExceeded."""
        make_user(file_engine, daily_scan_limit=3)

        results = _run_parallel(
            lambda: quota_service.consume_scan(file_engine, "user-1", TODAY), 10
        )

        accepted = [r for r in results if isinstance(r, int)]
        rejected = [r for r in results if isinstance(r, QuotaExceededError)]
        assert len(accepted) == 3
        assert len(rejected) == 7
        assert sorted(accepted) == [0, 1, 2]
        assert load_user(file_engine, "user-1").daily_scan_count == 3

    def test_scan_awards_bounded_by_limit(self, file_engine):
        make_user(file_engine, points=0, daily_scan_limit=2)

        results = _run_parallel(
            lambda: reward_service.scan_and_award(file_engine, "user-1", 10, "bottle", now=NOW),
            6,
        )

        assert sum(1 for r in results if isinstance(r, QuotaExceededError)) == 4
        assert balance_service.get_balance(file_engine, "user-1") == 20


class TestConcurrentAwards:
    def test_same_day_awards_increment_streak_once(self, file_engine):
        make_user(file_engine, streak=4, last_activity_date=NOW - timedelta(days=1))

        _run_parallel(
            lambda: reward_service.award_points(file_engine, "user-1", 3, "post", now=NOW), 8
        )

        user = load_user(file_engine, "user-1")
        assert user.streak == 5
        assert user.points == 24


# ---------------------------------------------------------------------------
# Statement shape: the read-add-write must happen inside one UPDATE.
# The thread races above queue on SQLite's writer lock, so they cannot
# tell an atomic UPDATE from a separate SELECT then UPDATE.
# ---------------------------------------------------------------------------
@pytest.fixture
def statements(db_engine):
    seen: list[str] = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        seen.append(" ".join(statement.split()))

    event.listen(db_engine, "before_cursor_execute", _record)
    yield seen
    event.remove(db_engine, "before_cursor_execute", _record)


class TestSingleStatementWrites:
    def test_credit_is_one_update(self, db_engine, statements):
        make_user(db_engine, points=10)
        statements.clear()

        with Session(db_engine) as session:
            assert balance_service.apply_credit(session, "user-1", 1) == 11
            session.commit()

        assert len(statements) == 1
        sql = statements[0]
        assert re.match(r"UPDATE users SET points=\(?users\.points \+ \?", sql)
        assert "RETURNING" in sql

    def test_debit_guard_is_in_the_where_clause(self, db_engine, statements):
        make_user(db_engine, points=3)
        statements.clear()

        with Session(db_engine) as session:
            with pytest.raises(InsufficientPointsError):
                balance_service.apply_credit(session, "user-1", -5)

        assert statements[0].startswith("UPDATE users")
        assert re.search(r"users\.points \+ \?\)? >= \?", statements[0])
        assert load_user(db_engine, "user-1").points == 3

    def test_scan_is_one_update(self, db_engine, statements):
        make_user(db_engine, daily_scan_limit=2)
        statements.clear()

        with Session(db_engine) as session:
            assert quota_service.apply_scan(session, "user-1", "2026-03-10") == 1
            session.commit()

        assert len(statements) == 1
        assert statements[0].startswith("UPDATE users SET")
        assert re.search(r"daily_scan_count=\(?CASE", statements[0])
