"""
ecoreward.config — YAML Configuration Loader
=============================================

Reads ``config.yaml`` for community identity and points-engine tuning.
Secrets (``DATABASE_URL``, ``JWT_SECRET``) stay in the environment.

Usage::

    from ecoreward.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.timezone)          # "Asia/Jakarta"
    print(cfg.tz)                # ZoneInfo('Asia/Jakarta')
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from ecoreward.constants import (
    DEFAULT_DAILY_SCAN_LIMIT,
    DEFAULT_LEADERBOARD_SIZE,
    DEFAULT_TIMEZONE,
)


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class EcoRewardConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    community_name: str

    # Streak days and scan quota days roll over at midnight in this zone
    timezone: str = DEFAULT_TIMEZONE

    # Points engine
    default_daily_scan_limit: int = DEFAULT_DAILY_SCAN_LIMIT
    leaderboard_size: int = DEFAULT_LEADERBOARD_SIZE

    # API
    api_port: int = 8000

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> EcoRewardConfig:
    """Read *path* and return an :class:`EcoRewardConfig` instance.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    ValueError
        If ``timezone`` is not a known IANA zone or a limit is negative.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    timezone = str(raw.get("timezone", DEFAULT_TIMEZONE))
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone in {config_path}: {timezone!r}") from exc

    scan_limit = int(raw.get("default_daily_scan_limit", DEFAULT_DAILY_SCAN_LIMIT))
    if scan_limit < 0:
        raise ValueError("default_daily_scan_limit must be >= 0")

    return EcoRewardConfig(
        community_name=raw["community_name"],
        timezone=timezone,
        default_daily_scan_limit=scan_limit,
        leaderboard_size=int(raw.get("leaderboard_size", DEFAULT_LEADERBOARD_SIZE)),
        api_port=int(raw.get("api_port", 8000)),
    )
