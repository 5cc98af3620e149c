"""
ecoreward.database.models — SQLAlchemy 2.0 Data Models
=======================================================

Tables:
- users               — Per-user aggregate: balance, streak and scan quota
- point_transactions  — Append-only ledger of point-affecting events

``users.points`` is a denormalized running total of
``point_transactions.points``; :mod:`ecoreward.services.reconciliation_service`
is the repair path when the two drift apart.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from ecoreward.constants import DEFAULT_DAILY_SCAN_LIMIT


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all EcoReward ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class TransactionType(enum.StrEnum):
    """Every kind of action that can move a user's balance."""
    POST_REWARD = "POST_REWARD"
    EVENT_ATTENDANCE = "EVENT_ATTENDANCE"
    MARKETPLACE_SALE = "MARKETPLACE_SALE"
    SCAN_RECYCLABLE_ITEM = "SCAN_RECYCLABLE_ITEM"
    OTHER = "OTHER"


# ---------------------------------------------------------------------------
# Users: one aggregate row per registered member
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[str | None] = mapped_column(String(100), default=None)

    # Balance (running total of the ledger)
    points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_updated: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Streak
    streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_activity_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )

    # Scan quota: count is only meaningful while last_scan_date is today
    daily_scan_limit: Mapped[int] = mapped_column(
        Integer, default=DEFAULT_DAILY_SCAN_LIMIT, nullable=False
    )
    daily_scan_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_scan_date: Mapped[str | None] = mapped_column(String(10), default=None)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    transactions: Mapped[list[PointTransaction]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<User id={self.id!r} name={self.name!r} points={self.points}>"


# ---------------------------------------------------------------------------
# PointTransaction: append-only ledger
# ---------------------------------------------------------------------------
class PointTransaction(Base):
    """Immutable record of a single point award or debit.

    ``user_name`` is a snapshot taken at write time and is never refreshed
    when the user later renames themselves.
    """
    __tablename__ = "point_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    user_name: Mapped[str] = mapped_column(String(100), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False, default="")
    type: Mapped[TransactionType] = mapped_column(
        Enum(
            TransactionType,
            native_enum=False,
            length=32,
            create_constraint=True,
            name="ck_point_transactions_type",
        ),
        nullable=False,
        default=TransactionType.OTHER,
    )
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    user: Mapped[User] = relationship(back_populates="transactions")

    def __repr__(self) -> str:
        return (
            f"<PointTransaction id={self.id} user={self.user_id!r} "
            f"points={self.points} type={self.type}>"
        )


# Leaderboard and history both read newest/highest first
Index("ix_users_points_desc", User.points.desc())
Index(
    "ix_point_transactions_user_ts",
    PointTransaction.user_id,
    PointTransaction.timestamp.desc(),
)
