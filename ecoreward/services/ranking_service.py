"""
ecoreward.services.ranking_service — Leaderboard
=================================================

Read-only ranking by balance.  Equal balances are ordered by ascending user
id so the same data always yields the same board.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Engine, select

from ecoreward.constants import ANONYMOUS_NAME, DEFAULT_LEADERBOARD_SIZE
from ecoreward.database.engine import get_session
from ecoreward.database.models import User
from ecoreward.engine.calendar import as_aware


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    rank: int
    user_id: str
    user_name: str
    balance: int
    last_updated: datetime | None

    def to_dict(self) -> dict:
        return {
            "rank": self.rank,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "balance": self.balance,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }


def get_leaderboard(
    engine: Engine, limit: int = DEFAULT_LEADERBOARD_SIZE
) -> list[LeaderboardEntry]:
    """Top *limit* users by balance."""
    if limit <= 0:
        return []

    with get_session(engine) as session:
        rows = session.execute(
            select(User.id, User.name, User.points, User.last_updated)
            .order_by(User.points.desc(), User.id.asc())
            .limit(limit)
        ).all()

    return [
        LeaderboardEntry(
            rank=position,
            user_id=row.id,
            user_name=row.name or ANONYMOUS_NAME,
            balance=row.points,
            last_updated=as_aware(row.last_updated) if row.last_updated else None,
        )
        for position, row in enumerate(rows, start=1)
    ]
