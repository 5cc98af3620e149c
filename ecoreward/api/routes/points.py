"""
ecoreward.api.routes.points — Per-user points endpoints
========================================================

Reads accept an optional ``user_id`` query parameter and default to the
caller.  Direct awards need an ``is_admin`` claim; members earn points
through ``POST /scans``, which is bounded by the daily scan quota.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, Response, status
from pydantic import BaseModel, Field

from ecoreward.api.deps import (
    ConfigDep,
    CurrentClaims,
    EngineDep,
    OptionalUserId,
    resolve_user_id,
)
from ecoreward.database.models import TransactionType
from ecoreward.services import (
    balance_service,
    ledger_service,
    quota_service,
    reward_service,
    streak_service,
)

router = APIRouter(tags=["points"])


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------
class RegisterRequest(BaseModel):
    name: str | None = Field(default=None, max_length=100)


class AwardRequest(BaseModel):
    points: int
    reason: str = Field(default="", max_length=500)
    type: TransactionType = TransactionType.OTHER
    user_id: str | None = None


class ScanRequest(BaseModel):
    points: int = Field(gt=0)
    reason: str = Field(default="Scanned recyclable item", max_length=500)


# ---------------------------------------------------------------------------
# POST /users
# ---------------------------------------------------------------------------
@router.post("/users", status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    response: Response,
    claims: CurrentClaims,
    engine: EngineDep,
    config: ConfigDep,
):
    """Create the caller's points aggregate.

    201 on first registration, 200 when an existing user only had their name
    refreshed.
    """
    user, created = reward_service.get_or_create_user(
        engine,
        claims["sub"],
        body.name or claims.get("name"),
        daily_scan_limit=config.default_daily_scan_limit,
    )
    if not created:
        response.status_code = status.HTTP_200_OK
    return {
        "user_id": user.id,
        "name": user.name,
        "points": user.points,
        "streak": user.streak,
        "daily_scan_limit": user.daily_scan_limit,
    }


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
@router.get("/points/balance")
def get_balance(
    engine: EngineDep,
    current: OptionalUserId,
    user_id: str | None = Query(None),
):
    target = resolve_user_id(user_id, current)
    return {"user_id": target, "balance": balance_service.get_balance(engine, target)}


@router.get("/points/streak")
def get_streak(
    engine: EngineDep,
    current: OptionalUserId,
    user_id: str | None = Query(None),
):
    target = resolve_user_id(user_id, current)
    return {"user_id": target, "streak": streak_service.get_streak(engine, target)}


@router.get("/points/history")
def get_history(
    engine: EngineDep,
    current: OptionalUserId,
    user_id: str | None = Query(None),
    limit: int | None = Query(None, ge=1, le=500),
):
    target = resolve_user_id(user_id, current)
    rows = ledger_service.get_history(engine, target, limit=limit)
    return {"user_id": target, "transactions": [r.to_dict() for r in rows]}


@router.get("/scans/remaining")
def get_remaining_scans(engine: EngineDep, config: ConfigDep, claims: CurrentClaims):
    user_id = claims["sub"]
    remaining = quota_service.get_remaining_scans(engine, user_id, tz=config.tz)
    return {"user_id": user_id, "remaining": remaining}


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------
@router.post("/points/award")
def award(
    body: AwardRequest,
    claims: CurrentClaims,
    engine: EngineDep,
    config: ConfigDep,
):
    """Admin award or debit for ``user_id`` (defaults to the caller).

    Scan rewards are refused here so they always pass the quota in
    ``POST /scans``.
    """
    if not claims.get("is_admin"):
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Not admin")
    if body.type == TransactionType.SCAN_RECYCLABLE_ITEM:
        raise HTTPException(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "Scan rewards must go through POST /api/scans",
        )
    target = resolve_user_id(body.user_id, claims["sub"])

    result = reward_service.award_points(
        engine, target, body.points, body.reason, body.type, tz=config.tz
    )
    return result.to_dict()


@router.post("/scans")
def scan(
    body: ScanRequest,
    claims: CurrentClaims,
    engine: EngineDep,
    config: ConfigDep,
):
    """Consume one daily scan and award its points."""
    result = reward_service.scan_and_award(
        engine, claims["sub"], body.points, body.reason, tz=config.tz
    )
    return result.to_dict()
