"""
EcoReward — Points, Streaks and Scan Quotas for a Recycling Community
======================================================================
Accounts for member engagement: awards points for actions, keeps a running
balance per member, tracks daily streaks, caps recyclable-item scans per
day, and ranks members on a leaderboard.

Package layout::

    ecoreward/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Shared defaults
    ├── errors.py          # PointsError hierarchy + ErrorKind
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine, session helper, async bridge
    │   └── models.py      # users + point_transactions
    ├── engine/
    │   ├── calendar.py    # Calendar-day helpers
    │   ├── streak.py      # Streak transition rule (pure)
    │   └── quota.py       # Daily scan quota rule (pure)
    ├── services/
    │   ├── ledger_service.py         # Append-only ledger + history
    │   ├── balance_service.py        # Atomic balance credit
    │   ├── streak_service.py         # Compare-and-set streak touch
    │   ├── quota_service.py          # Atomic scan consume
    │   ├── ranking_service.py        # Leaderboard
    │   ├── reward_service.py         # Award orchestration + registration
    │   ├── reconciliation_service.py # Ledger vs balance repair
    │   └── point_service.py          # Async facade + result listeners
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # JWT identity, engine, config
        └── routes/        # Public + per-user endpoints
"""

__version__ = "0.1.0"
