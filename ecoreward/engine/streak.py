"""
ecoreward.engine.streak — Day-over-day streak rule
===================================================

Pure function, no DB I/O.  The day gap is measured between local midnights
so an award at 23:59 followed by one at 00:01 counts as consecutive days.

    gap == 0         → unchanged (same day, repeated awards do not inflate)
    gap == 1         → streak + 1
    gap  > 1 / never → reset to 1
    gap  < 0         → unchanged (clock skew or backdated write)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo

from ecoreward.engine.calendar import local_date


@dataclass(frozen=True, slots=True)
class StreakTransition:
    streak: int
    changed: bool
    day_gap: int | None  # None when there was no previous activity


def day_gap(last_activity: datetime | None, now: datetime, tz: tzinfo = UTC) -> int | None:
    """Whole calendar days between *last_activity* and *now* in *tz*."""
    if last_activity is None:
        return None
    return (local_date(now, tz) - local_date(last_activity, tz)).days


def next_streak(
    current: int,
    last_activity: datetime | None,
    now: datetime,
    tz: tzinfo = UTC,
) -> StreakTransition:
    """Apply the streak transition law to *current*."""
    gap = day_gap(last_activity, now, tz)

    if gap is None or gap > 1:
        return StreakTransition(streak=1, changed=True, day_gap=gap)
    if gap == 1:
        return StreakTransition(streak=current + 1, changed=True, day_gap=gap)
    return StreakTransition(streak=current, changed=False, day_gap=gap)
