"""
ecoreward.api.main — FastAPI application entry point
=====================================================

Run with::

    uvicorn ecoreward.api.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

load_dotenv()

from ecoreward.api.deps import get_engine  # noqa: E402
from ecoreward.api.routes.points import router as points_router  # noqa: E402
from ecoreward.api.routes.public import router as public_router  # noqa: E402
from ecoreward.database.engine import init_db  # noqa: E402
from ecoreward.errors import ErrorKind, PointsError  # noqa: E402

logger = logging.getLogger(__name__)

# Each error kind gets its own status so the front end can pick a message
_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.USER_NOT_FOUND: 404,
    ErrorKind.INSUFFICIENT_POINTS: 409,
    ErrorKind.RECONCILIATION: 409,
    ErrorKind.QUOTA_EXCEEDED: 429,
    ErrorKind.STORE_UNAVAILABLE: 503,
}


def _cors_origins() -> list[str]:
    """Origins allowed to call the API from a browser.

    ``CORS_ALLOW_ORIGINS`` (comma-separated) wins over ``FRONTEND_URL``;
    with neither set, cross-origin calls are refused.
    """
    configured = os.getenv("CORS_ALLOW_ORIGINS", "").strip() or os.getenv("FRONTEND_URL", "")
    origins = (part.strip().rstrip("/") for part in configured.split(","))
    return [origin for origin in origins if origin]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the engine once before serving requests.

    Tables are created here only when ``ECOREWARD_CREATE_TABLES=1``; in
    production the schema comes from ``alembic upgrade head``.
    """
    engine = get_engine()
    if os.getenv("ECOREWARD_CREATE_TABLES") == "1":
        init_db(engine)
    logger.info("Points API ready on %s", engine.url.render_as_string(hide_password=True))
    yield
    logger.info("Points API stopped")


app = FastAPI(
    title="EcoReward Points API",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PointsError)
async def points_error_handler(request: Request, exc: PointsError) -> JSONResponse:
    status_code = _STATUS_BY_KIND.get(exc.kind, 500)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.kind.value, "message": str(exc)},
    )


app.include_router(public_router, prefix="/api")
app.include_router(points_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
