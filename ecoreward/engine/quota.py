"""
ecoreward.engine.quota — Daily scan quota rule
===============================================

The stored ``daily_scan_count`` only counts while ``last_scan_date`` is
today; on any other day the quota is implicitly full again.  No write is
needed for the reset.
"""

from __future__ import annotations


def remaining_scans(
    limit: int,
    count: int,
    last_scan_date: str | None,
    today: str,
) -> int:
    """Scans still allowed *today* (a ``YYYY-MM-DD`` key)."""
    if last_scan_date != today:
        return max(0, limit)
    return max(0, limit - count)
