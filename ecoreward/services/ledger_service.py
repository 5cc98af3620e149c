"""
ecoreward.services.ledger_service — Append-only point ledger
=============================================================

Rows in ``point_transactions`` are written once and never updated or
deleted here.  History reads are plain queries re-issued on every call;
nothing is cached between calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from ecoreward.database.engine import get_session
from ecoreward.database.models import PointTransaction, TransactionType
from ecoreward.engine.calendar import as_aware, to_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TransactionRecord:
    """Read-side view of one ledger row."""

    id: str
    user_id: str
    user_name: str
    points: int
    reason: str
    type: TransactionType
    timestamp: datetime

    @classmethod
    def from_row(cls, row: PointTransaction) -> TransactionRecord:
        return cls(
            id=str(row.id),
            user_id=row.user_id,
            user_name=row.user_name,
            points=row.points,
            reason=row.reason,
            type=TransactionType(row.type),
            timestamp=as_aware(row.timestamp),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "points": self.points,
            "reason": self.reason,
            "type": self.type.value,
            "timestamp": self.timestamp.isoformat(),
        }


def append_transaction(
    session: Session,
    *,
    user_id: str,
    user_name: str,
    points: int,
    reason: str,
    type_: TransactionType,
    now: datetime,
) -> PointTransaction:
    """Insert one ledger row inside the caller's transaction."""
    row = PointTransaction(
        user_id=user_id,
        user_name=user_name,
        points=points,
        reason=reason,
        type=type_,
        timestamp=to_utc(now),
    )
    session.add(row)
    session.flush()
    return row


def get_history(
    engine: Engine, user_id: str, *, limit: int | None = None
) -> list[TransactionRecord]:
    """Ledger rows for *user_id*, newest first."""
    query = (
        select(PointTransaction)
        .where(PointTransaction.user_id == user_id)
        .order_by(PointTransaction.timestamp.desc(), PointTransaction.id.desc())
    )
    if limit is not None:
        query = query.limit(max(0, limit))

    with get_session(engine) as session:
        rows = session.scalars(query).all()
        return [TransactionRecord.from_row(row) for row in rows]
