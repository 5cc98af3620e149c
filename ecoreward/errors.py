"""
ecoreward.errors — Typed failures of the points subsystem
==========================================================

Every operation either returns its value or raises a :class:`PointsError`
subclass.  The ``kind`` attribute is what callers (HTTP layer, result
listeners) switch on; nothing inside the subsystem catches these.
"""

from __future__ import annotations

import enum


class ErrorKind(enum.StrEnum):
    UNAUTHENTICATED = "unauthenticated"
    USER_NOT_FOUND = "user_not_found"
    STORE_UNAVAILABLE = "store_unavailable"
    QUOTA_EXCEEDED = "quota_exceeded"
    RECONCILIATION = "reconciliation"
    INSUFFICIENT_POINTS = "insufficient_points"


class PointsError(Exception):
    """Base class for all subsystem errors."""

    kind: ErrorKind

    def __init__(self, message: str, *, user_id: str | None = None) -> None:
        super().__init__(message)
        self.user_id = user_id


class UnauthenticatedError(PointsError):
    kind = ErrorKind.UNAUTHENTICATED

    def __init__(self, message: str = "No authenticated user") -> None:
        super().__init__(message)


class UserNotFoundError(PointsError):
    kind = ErrorKind.USER_NOT_FOUND

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User {user_id!r} not found", user_id=user_id)


class StoreUnavailableError(PointsError):
    kind = ErrorKind.STORE_UNAVAILABLE


class QuotaExceededError(PointsError):
    kind = ErrorKind.QUOTA_EXCEEDED

    def __init__(self, user_id: str, limit: int) -> None:
        super().__init__(
            f"Daily scan limit of {limit} reached for user {user_id!r}",
            user_id=user_id,
        )
        self.limit = limit


class InsufficientPointsError(PointsError):
    kind = ErrorKind.INSUFFICIENT_POINTS

    def __init__(self, user_id: str, delta: int) -> None:
        super().__init__(
            f"Debit of {-delta} would overdraw user {user_id!r}",
            user_id=user_id,
        )
        self.delta = delta


class ReconciliationError(PointsError):
    """Stored balance disagrees with the ledger total.

    Carries both figures so the caller can decide whether to run
    :func:`ecoreward.services.reconciliation_service.reconcile_balances`.
    """
    kind = ErrorKind.RECONCILIATION

    def __init__(self, user_id: str, stored: int, ledger: int) -> None:
        super().__init__(
            f"Balance drift for user {user_id!r}: stored={stored} ledger={ledger}",
            user_id=user_id,
        )
        self.stored = stored
        self.ledger = ledger
