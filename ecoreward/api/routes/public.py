"""
ecoreward.api.routes.public — Read-only public endpoints
=========================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Query

from ecoreward.api.deps import ConfigDep, EngineDep
from ecoreward.services.ranking_service import get_leaderboard

router = APIRouter(tags=["public"])


# ---------------------------------------------------------------------------
# GET /leaderboard
# ---------------------------------------------------------------------------
@router.get("/leaderboard")
def leaderboard(
    engine: EngineDep,
    config: ConfigDep,
    limit: int | None = Query(None, ge=1, le=100),
):
    """Top users by balance; ties ordered by user id."""
    entries = get_leaderboard(engine, limit or config.leaderboard_size)
    return {"entries": [e.to_dict() for e in entries]}
