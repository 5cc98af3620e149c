"""
ecoreward.services.reward_service — Award orchestration
========================================================

Shared service module callable by the API and the async facade.

An award is one database transaction:

    1. streak touch      (streak_service.apply_touch)
    2. ledger append     (ledger_service.append_transaction)
    3. balance credit    (balance_service.apply_credit)

If any step fails the whole transaction rolls back, so this path never
leaves a ledger row without its matching balance change.  The scan path
puts the quota check (quota_service.apply_scan) in front of the same three
steps, still inside the one transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from ecoreward.constants import ANONYMOUS_NAME, DEFAULT_DAILY_SCAN_LIMIT
from ecoreward.database.engine import get_session
from ecoreward.database.models import TransactionType, User
from ecoreward.engine.calendar import day_key, local_date, to_utc, utcnow
from ecoreward.services.balance_service import apply_credit
from ecoreward.services.ledger_service import append_transaction
from ecoreward.services.quota_service import apply_scan
from ecoreward.services.streak_service import apply_touch

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AwardResult:
    """What a successful award changed."""

    transaction_id: str
    points: int
    balance: int
    streak: int
    scans_remaining: int | None = None

    def to_dict(self) -> dict:
        return {
            "transaction_id": self.transaction_id,
            "points": self.points,
            "balance": self.balance,
            "streak": self.streak,
            "scans_remaining": self.scans_remaining,
        }


def _check_points(points: int) -> None:
    # bool is an int subclass; True would silently award 1 point
    if isinstance(points, bool) or not isinstance(points, int):
        raise TypeError(f"points must be an int, got {type(points).__name__}")


def _award_in_session(
    session: Session,
    *,
    user_id: str,
    points: int,
    reason: str,
    type_: TransactionType,
    now: datetime,
    tz: tzinfo,
    scans_remaining: int | None = None,
) -> AwardResult:
    streak = apply_touch(session, user_id, now, tz)

    user_name = session.scalar(select(User.name).where(User.id == user_id))
    row = append_transaction(
        session,
        user_id=user_id,
        user_name=user_name or ANONYMOUS_NAME,
        points=points,
        reason=reason,
        type_=type_,
        now=now,
    )

    balance = apply_credit(session, user_id, points)

    return AwardResult(
        transaction_id=str(row.id),
        points=points,
        balance=balance,
        streak=streak,
        scans_remaining=scans_remaining,
    )


def award_points(
    engine: Engine,
    user_id: str,
    points: int,
    reason: str,
    type_: TransactionType | str = TransactionType.OTHER,
    *,
    now: datetime | None = None,
    tz: tzinfo = UTC,
) -> AwardResult:
    """Award (or debit) *points* to *user_id* and record why.

    Raises
    ------
    UserNotFoundError
        No aggregate exists for *user_id*.
    InsufficientPointsError
        A debit would take the balance below zero.
    StoreUnavailableError
        The database could not be reached.
    """
    _check_points(points)
    type_ = TransactionType(type_)
    now = to_utc(now or utcnow())

    with get_session(engine) as session:
        result = _award_in_session(
            session,
            user_id=user_id,
            points=points,
            reason=reason,
            type_=type_,
            now=now,
            tz=tz,
        )

    logger.info(
        "Awarded %+d to %s (%s: %s) → balance %d, streak %d",
        points, user_id, type_.value, reason, result.balance, result.streak,
    )
    return result


def scan_and_award(
    engine: Engine,
    user_id: str,
    points: int,
    reason: str,
    *,
    now: datetime | None = None,
    tz: tzinfo = UTC,
) -> AwardResult:
    """Consume one daily scan and award *points* for it, atomically.

    A rejected scan raises :class:`QuotaExceededError` and writes nothing.
    """
    _check_points(points)
    now = to_utc(now or utcnow())
    today = day_key(local_date(now, tz))

    with get_session(engine) as session:
        left = apply_scan(session, user_id, today)
        result = _award_in_session(
            session,
            user_id=user_id,
            points=points,
            reason=reason,
            type_=TransactionType.SCAN_RECYCLABLE_ITEM,
            now=now,
            tz=tz,
            scans_remaining=left,
        )

    logger.info(
        "Scan award %+d to %s → balance %d, %d scans left today",
        points, user_id, result.balance, left,
    )
    return result


def get_or_create_user(
    engine: Engine,
    user_id: str,
    name: str | None,
    *,
    daily_scan_limit: int = DEFAULT_DAILY_SCAN_LIMIT,
) -> tuple[User, bool]:
    """Create the zeroed aggregate for a new user.

    Calling it again for an existing user only refreshes the display name;
    balance, streak and quota are left untouched.  The flag is ``True`` when
    a row was inserted.
    """
    created = False
    with get_session(engine) as session:
        user = session.get(User, user_id)
        if user is None:
            user = User(
                id=user_id,
                name=name,
                points=0,
                streak=0,
                daily_scan_limit=daily_scan_limit,
                daily_scan_count=0,
                last_scan_date=None,
            )
            session.add(user)
            created = True
            logger.info("Registered user %s (%s)", user_id, name)
        elif name:
            user.name = name
        session.flush()
        session.refresh(user)
    return user, created


def register_user(
    engine: Engine,
    user_id: str,
    name: str | None,
    *,
    daily_scan_limit: int = DEFAULT_DAILY_SCAN_LIMIT,
) -> User:
    """Idempotent registration; see :func:`get_or_create_user`."""
    user, _ = get_or_create_user(
        engine, user_id, name, daily_scan_limit=daily_scan_limit
    )
    return user
