"""Create users and point_transactions tables

Revision ID: 5f2c81d0a7e3
Revises:
Create Date: 2026-10-16 09:12:40.118204

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '5f2c81d0a7e3'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create the per-user aggregate and the append-only ledger."""

    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("name", sa.String(100), nullable=True),
        sa.Column("points", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "last_updated",
            sa.DateTime(timezone=True),
            nullable=True,
            server_default=sa.func.now(),
        ),
        sa.Column("streak", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_activity_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("daily_scan_limit", sa.Integer, nullable=False, server_default="2"),
        sa.Column("daily_scan_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_scan_date", sa.String(10), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=True,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_users_points_desc", "users", [sa.text("points DESC")])

    # --- point_transactions ---
    op.create_table(
        "point_transactions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.String(128),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_name", sa.String(100), nullable=False),
        sa.Column("points", sa.Integer, nullable=False),
        sa.Column("reason", sa.Text, nullable=False, server_default=""),
        sa.Column("type", sa.String(32), nullable=False, server_default="OTHER"),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "type IN ('POST_REWARD', 'EVENT_ATTENDANCE', 'MARKETPLACE_SALE', "
            "'SCAN_RECYCLABLE_ITEM', 'OTHER')",
            name="ck_point_transactions_type",
        ),
    )
    op.create_index(
        "ix_point_transactions_user_ts", "point_transactions",
        ["user_id", sa.text("timestamp DESC")],
    )


def downgrade() -> None:
    """Drop the ledger and aggregate tables."""
    op.drop_index("ix_point_transactions_user_ts", table_name="point_transactions")
    op.drop_table("point_transactions")
    op.drop_index("ix_users_points_desc", table_name="users")
    op.drop_table("users")
