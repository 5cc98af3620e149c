"""
ecoreward.services.point_service — Async facade with result listeners
======================================================================

Every subsystem operation as a coroutine.  The synchronous service
functions run on a worker thread through :func:`run_db`.

Mutating calls publish an :class:`OperationOutcome` to subscribed
listeners (toasts, announcements, audit hooks) after they finish, success
or failure.  Listeners are observers only: a listener that raises is
logged and ignored, and errors from the operation itself still reach the
caller.

Usage::

    service = PointService(engine, tz=cfg.tz)
    service.subscribe(lambda outcome: print(outcome))
    result = await service.award_points("uid", 20, "scan", TransactionType.SCAN_RECYCLABLE_ITEM)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime, tzinfo
from typing import Any

from sqlalchemy import Engine

from ecoreward.constants import DEFAULT_DAILY_SCAN_LIMIT, DEFAULT_LEADERBOARD_SIZE
from ecoreward.database.engine import run_db
from ecoreward.database.models import TransactionType, User
from ecoreward.errors import PointsError
from ecoreward.services import (
    balance_service,
    ledger_service,
    quota_service,
    ranking_service,
    reconciliation_service,
    reward_service,
    streak_service,
)
from ecoreward.services.ledger_service import TransactionRecord
from ecoreward.services.ranking_service import LeaderboardEntry
from ecoreward.services.reward_service import AwardResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class OperationOutcome:
    """Result of one mutating call, as seen by listeners."""

    operation: str
    user_id: str
    value: Any = None
    error: PointsError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


Listener = Callable[[OperationOutcome], None]


class PointService:
    """Awaitable entry point to the points subsystem."""

    def __init__(self, engine: Engine, *, tz: tzinfo = UTC) -> None:
        self.engine = engine
        self.tz = tz
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, outcome: OperationOutcome) -> None:
        for listener in list(self._listeners):
            try:
                listener(outcome)
            except Exception:
                logger.exception(
                    "Result listener %r failed for %s", listener, outcome.operation
                )

    async def _mutate(
        self, operation: str, user_id: str, func: Callable[..., Any], *args, **kwargs
    ) -> Any:
        try:
            value = await run_db(func, self.engine, user_id, *args, **kwargs)
        except PointsError as exc:
            self._notify(OperationOutcome(operation, user_id, error=exc))
            raise
        self._notify(OperationOutcome(operation, user_id, value=value))
        return value

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    async def register_user(
        self,
        user_id: str,
        name: str | None,
        *,
        daily_scan_limit: int = DEFAULT_DAILY_SCAN_LIMIT,
    ) -> User:
        return await self._mutate(
            "register_user", user_id, reward_service.register_user,
            name, daily_scan_limit=daily_scan_limit,
        )

    async def award_points(
        self,
        user_id: str,
        points: int,
        reason: str,
        type_: TransactionType | str = TransactionType.OTHER,
        *,
        now: datetime | None = None,
    ) -> AwardResult:
        return await self._mutate(
            "award_points", user_id, reward_service.award_points,
            points, reason, type_, now=now, tz=self.tz,
        )

    async def scan_and_award(
        self, user_id: str, points: int, reason: str, *, now: datetime | None = None
    ) -> AwardResult:
        return await self._mutate(
            "scan_and_award", user_id, reward_service.scan_and_award,
            points, reason, now=now, tz=self.tz,
        )

    async def consume_scan(self, user_id: str, today: date | None = None) -> int:
        return await self._mutate(
            "consume_scan", user_id, quota_service.consume_scan, today, tz=self.tz,
        )

    async def credit(self, user_id: str, delta: int) -> int:
        return await self._mutate(
            "credit", user_id, balance_service.credit_balance, delta,
        )

    async def touch_streak(self, user_id: str, now: datetime | None = None) -> int:
        return await self._mutate(
            "touch_streak", user_id, streak_service.touch_streak, now, tz=self.tz,
        )

    async def reconcile(self) -> dict:
        """Repair drifted balances.  Not published to listeners."""
        return await run_db(reconciliation_service.reconcile_balances, self.engine)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def balance(self, user_id: str) -> int:
        return await run_db(balance_service.get_balance, self.engine, user_id)

    async def verify_balance(self, user_id: str) -> int:
        return await run_db(reconciliation_service.verify_balance, self.engine, user_id)

    async def streak(self, user_id: str) -> int:
        return await run_db(streak_service.get_streak, self.engine, user_id)

    async def remaining_scans(self, user_id: str, today: date | None = None) -> int:
        return await run_db(
            quota_service.get_remaining_scans, self.engine, user_id, today, tz=self.tz
        )

    async def history(
        self, user_id: str, *, limit: int | None = None
    ) -> list[TransactionRecord]:
        return await run_db(ledger_service.get_history, self.engine, user_id, limit=limit)

    async def leaderboard(
        self, limit: int = DEFAULT_LEADERBOARD_SIZE
    ) -> list[LeaderboardEntry]:
        return await run_db(ranking_service.get_leaderboard, self.engine, limit)
