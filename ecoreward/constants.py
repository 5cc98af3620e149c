"""
ecoreward.constants — Shared Constants
=======================================

Single source of truth for defaults shared by the models, services and API.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Aggregate defaults
# ---------------------------------------------------------------------------
DEFAULT_DAILY_SCAN_LIMIT = 2
DEFAULT_LEADERBOARD_SIZE = 10
ANONYMOUS_NAME = "Anonymous"

# ---------------------------------------------------------------------------
# Calendar
# ---------------------------------------------------------------------------
DEFAULT_TIMEZONE = "UTC"
SCAN_DATE_FORMAT = "%Y-%m-%d"

# Compare-and-set attempts for the streak write before giving up
STREAK_CAS_ATTEMPTS = 5
