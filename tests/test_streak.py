"""
tests/test_streak.py — Streak Rule & Persistence Tests
=======================================================

The pure transition law (same day, next day, gap, skew) and the
compare-and-set write in streak_service.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest
from conftest import load_user, make_user

from ecoreward.engine.streak import day_gap, next_streak
from ecoreward.errors import UserNotFoundError
from ecoreward.services import streak_service

NOW = datetime(2026, 3, 10, 9, 30, tzinfo=UTC)


class TestTransitionLaw:
    def test_same_day_is_unchanged(self):
        earlier = NOW.replace(hour=0, minute=5)
        t = next_streak(4, earlier, NOW)
        assert t.streak == 4
        assert not t.changed
        assert t.day_gap == 0

    def test_next_day_increments(self):
        t = next_streak(3, NOW - timedelta(days=1), NOW)
        assert t.streak == 4
        assert t.changed

    def test_consecutive_days_across_midnight(self):
        """23:59 then 00:01 counts as two consecutive days."""
        late = datetime(2026, 3, 9, 23, 59, tzinfo=UTC)
        early = datetime(2026, 3, 10, 0, 1, tzinfo=UTC)
        assert next_streak(1, late, early).streak == 2

    def test_just_under_48h_is_still_one_day(self):
        """Gap is measured in calendar days, not elapsed hours."""
        last = datetime(2026, 3, 9, 0, 0, tzinfo=UTC)
        now = datetime(2026, 3, 10, 23, 59, tzinfo=UTC)
        assert day_gap(last, now) == 1

    @pytest.mark.parametrize("days", [2, 3, 30, 400])
    def test_gap_resets_to_one(self, days):
        t = next_streak(9, NOW - timedelta(days=days), NOW)
        assert t.streak == 1
        assert t.changed

    def test_first_activity_starts_at_one(self):
        t = next_streak(0, None, NOW)
        assert t.streak == 1
        assert t.day_gap is None

    def test_future_last_activity_is_a_noop(self):
        """Clock skew: a last activity after now never advances the streak."""
        t = next_streak(5, NOW + timedelta(days=2), NOW)
        assert t.streak == 5
        assert not t.changed

    def test_days_follow_the_given_timezone(self):
        """16:00 UTC and 18:00 UTC are different days in Jakarta (UTC+7)."""
        jakarta = ZoneInfo("Asia/Jakarta")
        a = datetime(2026, 3, 10, 16, 0, tzinfo=UTC)  # 23:00 local
        b = datetime(2026, 3, 10, 18, 0, tzinfo=UTC)  # 01:00 next day local
        assert day_gap(a, b) == 0
        assert day_gap(a, b, jakarta) == 1

    def test_naive_timestamps_are_utc(self):
        naive = datetime(2026, 3, 9, 9, 30)
        assert day_gap(naive, NOW) == 1


class TestTouchStreak:
    def test_yesterday_streak_three_becomes_four(self, db_engine):
        """lastActivity yesterday + streak 3 → 4, lastActivity = now."""
        make_user(db_engine, streak=3, last_activity_date=NOW - timedelta(days=1))

        assert streak_service.touch_streak(db_engine, "user-1", NOW) == 4

        user = load_user(db_engine, "user-1")
        assert user.streak == 4
        assert user.last_activity_date.replace(tzinfo=UTC) == NOW

    def test_repeated_touch_same_day_is_idempotent(self, db_engine):
        make_user(db_engine, streak=2, last_activity_date=NOW - timedelta(days=1))

        first = streak_service.touch_streak(db_engine, "user-1", NOW)
        second = streak_service.touch_streak(db_engine, "user-1", NOW + timedelta(hours=5))

        assert first == second == 3

    def test_same_day_touch_keeps_last_activity(self, db_engine):
        morning = NOW.replace(hour=6)
        make_user(db_engine, streak=2, last_activity_date=morning)

        streak_service.touch_streak(db_engine, "user-1", NOW)

        user = load_user(db_engine, "user-1")
        assert user.last_activity_date.replace(tzinfo=UTC) == morning

    def test_first_touch_sets_one(self, db_engine):
        make_user(db_engine)
        assert streak_service.touch_streak(db_engine, "user-1", NOW) == 1

    def test_gap_resets(self, db_engine):
        make_user(db_engine, streak=12, last_activity_date=NOW - timedelta(days=5))
        assert streak_service.touch_streak(db_engine, "user-1", NOW) == 1

    def test_backdated_touch_is_noop(self, db_engine):
        make_user(db_engine, streak=6, last_activity_date=NOW)
        assert streak_service.touch_streak(db_engine, "user-1", NOW - timedelta(days=3)) == 6

        user = load_user(db_engine, "user-1")
        assert user.last_activity_date.replace(tzinfo=UTC) == NOW

    def test_unknown_user(self, db_engine):
        with pytest.raises(UserNotFoundError):
            streak_service.touch_streak(db_engine, "ghost", NOW)


class TestGetStreak:
    def test_reads_stored_value(self, db_engine):
        make_user(db_engine, streak=7)
        assert streak_service.get_streak(db_engine, "user-1") == 7

    def test_unknown_user(self, db_engine):
        with pytest.raises(UserNotFoundError):
            streak_service.get_streak(db_engine, "ghost")
