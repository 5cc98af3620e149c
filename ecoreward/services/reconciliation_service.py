"""
ecoreward.services.reconciliation_service — Balance Reconciliation
===================================================================

Validates ``users.points`` against the ``point_transactions`` ledger and
corrects drift if found.

How it works:
    1. Query ``SUM(points)`` from ``point_transactions`` grouped by user.
    2. Compare against the stored ``users.points``.
    3. If there is a mismatch, overwrite the balance with the ledger total,
       but only if the stored value is still the one that was read.
    4. Log all corrections for audit.

A balance that moved between the read and the write is skipped and picked
up by the next run.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import Engine, func, select, update

from ecoreward.database.engine import get_session
from ecoreward.database.models import PointTransaction, User
from ecoreward.errors import ReconciliationError, UserNotFoundError

logger = logging.getLogger(__name__)


def verify_balance(engine: Engine, user_id: str) -> int:
    """Return the balance if it matches the ledger, else raise.

    Raises :class:`ReconciliationError` carrying both totals on drift.
    """
    with get_session(engine) as session:
        stored = session.scalar(select(User.points).where(User.id == user_id))
        if stored is None:
            raise UserNotFoundError(user_id)
        ledger = session.scalar(
            select(func.coalesce(func.sum(PointTransaction.points), 0))
            .where(PointTransaction.user_id == user_id)
        )

    if stored != ledger:
        raise ReconciliationError(user_id, stored=stored, ledger=ledger)
    return stored


def reconcile_balances(engine: Engine) -> dict:
    """Validate every balance against the ledger and fix drift.

    Returns ``{"checked": N, "corrected": M, "corrections": [...]}``.
    """
    corrections: list[dict] = []

    with get_session(engine) as session:
        # Ground truth: SUM(points) per user from the ledger
        truth_rows = session.execute(
            select(
                PointTransaction.user_id,
                func.sum(PointTransaction.points).label("actual"),
            )
            .group_by(PointTransaction.user_id)
        ).all()
        truth_map: dict[str, int] = {row.user_id: row.actual for row in truth_rows}

        balances = session.execute(select(User.id, User.points)).all()

        checked = 0
        skipped = 0
        for user_id, stored in balances:
            checked += 1
            actual = truth_map.get(user_id, 0)
            if stored == actual:
                continue

            result = session.execute(
                update(User)
                .where(User.id == user_id, User.points == stored)
                .values(points=actual, last_updated=func.now())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                skipped += 1
                continue

            corrections.append({
                "user_id": user_id,
                "stored": stored,
                "actual": actual,
                "diff": actual - stored,
            })

    if corrections:
        logger.warning(
            "Balance reconciliation: corrected %d/%d balances: %s",
            len(corrections), checked, corrections,
        )
    else:
        logger.info("Balance reconciliation: all %d balances match", checked)
    if skipped:
        logger.info("Balance reconciliation: %d balances changed mid-run, skipped", skipped)

    return {
        "checked": checked,
        "corrected": len(corrections),
        "corrections": corrections,
        "timestamp": datetime.now(UTC).isoformat(),
    }
