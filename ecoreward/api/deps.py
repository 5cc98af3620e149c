"""
ecoreward.api.deps — FastAPI dependency injection
==================================================

The HTTP layer is the only place the "current user" is resolved.  Services
below it always receive an explicit ``user_id``.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Annotated

import jwt
from fastapi import Depends, Header
from jwt.exceptions import InvalidTokenError
from sqlalchemy import Engine

from ecoreward.config import EcoRewardConfig, load_config
from ecoreward.database.engine import create_db_engine
from ecoreward.errors import UnauthenticatedError

JWT_ALGORITHM = "HS256"

# Placeholder values that must never sign tokens
_PLACEHOLDER_SECRETS = frozenset({"ecoreward-dev-secret-change-me", "change-me", "secret", "dev"})
_MIN_SECRET_LENGTH = 32


def _load_jwt_secret() -> str:
    """Return the HS256 signing key, refusing to start with a guessable one."""
    secret = os.getenv("JWT_SECRET", "").strip()
    problem = None
    if not secret:
        problem = "JWT_SECRET environment variable is not set"
    elif secret in _PLACEHOLDER_SECRETS:
        problem = f"JWT_SECRET is a known weak default ({secret!r})"
    elif len(secret) < _MIN_SECRET_LENGTH:
        problem = (
            f"JWT_SECRET is too short ({len(secret)} chars, "
            f"need {_MIN_SECRET_LENGTH})"
        )
    if problem:
        raise RuntimeError(
            f"{problem}. Set a random value, e.g. "
            "`openssl rand -base64 48`, in the environment or .env."
        )
    return secret


JWT_SECRET: str = _load_jwt_secret()


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> EcoRewardConfig:
    return load_config(os.getenv("ECOREWARD_CONFIG", "config.yaml"))


def _decode(authorization: str | None) -> dict | None:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization.split(" ", 1)[1]
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except InvalidTokenError:
        raise UnauthenticatedError("Invalid token")


def get_current_claims(
    authorization: Annotated[str | None, Header()] = None,
) -> dict:
    """Validate the bearer JWT and return its claims. Raises 401 if absent."""
    payload = _decode(authorization)
    if payload is None or not payload.get("sub"):
        raise UnauthenticatedError()
    return payload


def get_optional_user_id(
    authorization: Annotated[str | None, Header()] = None,
) -> str | None:
    """Current user id, or None for anonymous callers."""
    payload = _decode(authorization)
    if payload is None:
        return None
    return payload.get("sub") or None


def resolve_user_id(explicit: str | None, current: str | None) -> str:
    """Explicit target wins; otherwise fall back to the caller."""
    user_id = explicit or current
    if not user_id:
        raise UnauthenticatedError("No user id given and no authenticated user")
    return user_id


CurrentClaims = Annotated[dict, Depends(get_current_claims)]
OptionalUserId = Annotated[str | None, Depends(get_optional_user_id)]
EngineDep = Annotated[Engine, Depends(get_engine)]
ConfigDep = Annotated[EcoRewardConfig, Depends(get_config)]
