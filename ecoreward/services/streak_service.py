"""
ecoreward.services.streak_service — Streak persistence
=======================================================

The transition rule lives in :mod:`ecoreward.engine.streak`.  The write is a
compare-and-set on the ``(streak, last_activity_date)`` pair that was read,
so two awards racing across midnight can increment the streak only once:
the loser re-reads, sees a same-day gap and leaves the streak alone.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, tzinfo

from sqlalchemy import Engine, select, update
from sqlalchemy.orm import Session

from ecoreward.constants import STREAK_CAS_ATTEMPTS
from ecoreward.database.engine import get_session
from ecoreward.database.models import User
from ecoreward.engine.calendar import as_aware, to_utc
from ecoreward.engine.streak import next_streak
from ecoreward.errors import StoreUnavailableError, UserNotFoundError

logger = logging.getLogger(__name__)


def apply_touch(
    session: Session, user_id: str, now: datetime, tz: tzinfo = UTC
) -> int:
    """Record activity at *now* inside the caller's transaction.

    Returns the streak after the touch.
    """
    for attempt in range(1, STREAK_CAS_ATTEMPTS + 1):
        row = session.execute(
            select(User.streak, User.last_activity_date).where(User.id == user_id)
        ).one_or_none()
        if row is None:
            raise UserNotFoundError(user_id)

        last = as_aware(row.last_activity_date) if row.last_activity_date else None
        transition = next_streak(row.streak, last, now, tz)
        if not transition.changed:
            return row.streak

        result = session.execute(
            update(User)
            .where(
                User.id == user_id,
                User.streak == row.streak,
                User.last_activity_date.is_not_distinct_from(row.last_activity_date),
            )
            .values(streak=transition.streak, last_activity_date=to_utc(now))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            logger.debug(
                "Streak for %s: %d → %d (gap=%s)",
                user_id, row.streak, transition.streak, transition.day_gap,
            )
            return transition.streak

        logger.debug("Streak write for %s lost a race (attempt %d)", user_id, attempt)

    raise StoreUnavailableError(
        f"Streak update for {user_id!r} kept conflicting after "
        f"{STREAK_CAS_ATTEMPTS} attempts",
        user_id=user_id,
    )


def touch_streak(
    engine: Engine, user_id: str, now: datetime | None = None, tz: tzinfo = UTC
) -> int:
    """Standalone streak touch in its own transaction."""
    now = now or datetime.now(UTC)
    with get_session(engine) as session:
        return apply_touch(session, user_id, now, tz)


def get_streak(engine: Engine, user_id: str) -> int:
    """Stored streak for *user_id*."""
    with get_session(engine) as session:
        streak = session.scalar(select(User.streak).where(User.id == user_id))
    if streak is None:
        raise UserNotFoundError(user_id)
    return streak
