"""
ecoreward.services.quota_service — Daily recyclable-scan quota
===============================================================

Admission control in front of the scan award path.  :func:`apply_scan` is a
single conditional ``UPDATE`` that both checks the remaining quota and
consumes one unit; two concurrent scans can never both pass a check and
then both increment.
"""

from __future__ import annotations

import logging
from datetime import UTC, date, tzinfo

from sqlalchemy import Engine, case, or_, select, update
from sqlalchemy.orm import Session

from ecoreward.database.engine import get_session
from ecoreward.database.models import User
from ecoreward.engine.calendar import day_key, local_date, utcnow
from ecoreward.engine.quota import remaining_scans
from ecoreward.errors import QuotaExceededError, UserNotFoundError

logger = logging.getLogger(__name__)


def _today(today: date | None, tz: tzinfo) -> str:
    return day_key(today or local_date(utcnow(), tz))


def apply_scan(session: Session, user_id: str, today: str) -> int:
    """Consume one scan for *today* inside the caller's transaction.

    Returns the scans left after this one.
    """
    scanned_today = User.last_scan_date == today
    stmt = (
        update(User)
        .where(
            User.id == user_id,
            User.daily_scan_limit > 0,
            or_(
                User.last_scan_date.is_(None),
                User.last_scan_date != today,
                User.daily_scan_count < User.daily_scan_limit,
            ),
        )
        .values(
            daily_scan_count=case(
                (scanned_today, User.daily_scan_count + 1), else_=1
            ),
            last_scan_date=today,
        )
        .returning(User.daily_scan_limit, User.daily_scan_count)
        .execution_options(synchronize_session=False)
    )

    row = session.execute(stmt).one_or_none()
    if row is not None:
        return max(0, row.daily_scan_limit - row.daily_scan_count)

    limit = session.scalar(select(User.daily_scan_limit).where(User.id == user_id))
    if limit is None:
        raise UserNotFoundError(user_id)
    logger.warning("Scan quota exhausted for %s (limit %d, day %s)", user_id, limit, today)
    raise QuotaExceededError(user_id, limit)


def consume_scan(
    engine: Engine, user_id: str, today: date | None = None, tz: tzinfo = UTC
) -> int:
    """Consume one scan in its own transaction; returns scans left."""
    with get_session(engine) as session:
        return apply_scan(session, user_id, _today(today, tz))


def get_remaining_scans(
    engine: Engine, user_id: str, today: date | None = None, tz: tzinfo = UTC
) -> int:
    """Scans still allowed today.  Pure read — a new day needs no reset write."""
    with get_session(engine) as session:
        row = session.execute(
            select(
                User.daily_scan_limit, User.daily_scan_count, User.last_scan_date
            ).where(User.id == user_id)
        ).one_or_none()
    if row is None:
        raise UserNotFoundError(user_id)
    return remaining_scans(
        row.daily_scan_limit, row.daily_scan_count, row.last_scan_date, _today(today, tz)
    )
