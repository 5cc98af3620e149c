"""
ecoreward.services.balance_service — Running balance per user
==============================================================

``users.points`` is changed only through :func:`apply_credit`, a single
``UPDATE ... SET points = points + :delta ... RETURNING points``.  The
read-add-write happens inside the database, so concurrent credits to one
user can never lose an update.

Debits are allowed but may not overdraw: a negative delta larger than the
current balance matches no row and raises :class:`InsufficientPointsError`.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, func, select, update
from sqlalchemy.orm import Session

from ecoreward.database.engine import get_session
from ecoreward.database.models import User
from ecoreward.errors import InsufficientPointsError, UserNotFoundError

logger = logging.getLogger(__name__)


def apply_credit(session: Session, user_id: str, delta: int) -> int:
    """Atomically add *delta* to the user's balance; returns the new balance."""
    stmt = update(User).where(User.id == user_id)
    if delta < 0:
        stmt = stmt.where(User.points + delta >= 0)
    stmt = (
        stmt.values(points=User.points + delta, last_updated=func.now())
        .returning(User.points)
        .execution_options(synchronize_session=False)
    )

    new_balance = session.execute(stmt).scalar_one_or_none()
    if new_balance is not None:
        return new_balance

    exists = session.scalar(select(User.id).where(User.id == user_id))
    if exists is None:
        raise UserNotFoundError(user_id)
    raise InsufficientPointsError(user_id, delta)


def credit_balance(engine: Engine, user_id: str, delta: int) -> int:
    """Credit (or debit) *delta* points in its own transaction."""
    with get_session(engine) as session:
        balance = apply_credit(session, user_id, delta)
    logger.debug("Credited %+d to %s → %d", delta, user_id, balance)
    return balance


def get_balance(engine: Engine, user_id: str) -> int:
    """Current balance, or 0 if the user has no aggregate yet."""
    with get_session(engine) as session:
        points = session.scalar(select(User.points).where(User.id == user_id))
    return points or 0
