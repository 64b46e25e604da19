"""
Theater Tracker API — FastAPI application entry point.

Routers are registered here. Each service lives in theater_tracker/api/.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from theater_tracker.api import auth, diary, feed, friends, reviews, shows
from theater_tracker.api.errors import GENERIC_FAILURE_MESSAGE, error_body
from theater_tracker.core.config import settings
from theater_tracker.core.logging import configure_logging
from theater_tracker.services.errors import TransientStoreError

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Theater Tracker API",
    description="Backend for the theater diary, reviews and activity feed.",
    version="0.1.0",
    docs_url="/docs" if settings.ENABLE_DOCS else None,
    redoc_url="/redoc" if settings.ENABLE_DOCS else None,
)

# ── CORS ──────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(auth.router,    prefix="/auth",    tags=["auth"])
app.include_router(shows.router,   prefix="/shows",   tags=["shows"])
app.include_router(diary.router,   prefix="/diary",   tags=["diary"])
app.include_router(reviews.router, prefix="/reviews", tags=["reviews"])
app.include_router(feed.router,    prefix="/feed",    tags=["feed"])
app.include_router(friends.router, prefix="/friends", tags=["friends"])


# ── Store failures ────────────────────────────────────────────────────────────
def _store_unavailable() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=error_body(TransientStoreError.code, GENERIC_FAILURE_MESSAGE),
    )


@app.exception_handler(TransientStoreError)
async def transient_store_handler(request: Request, exc: TransientStoreError) -> JSONResponse:
    logger.warning("Transient store failure on %s %s: %s", request.method, request.url.path, exc)
    return _store_unavailable()


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return _store_unavailable()


# ── Health check ──────────────────────────────────────────────────────────────
@app.get("/health", tags=["system"])
def health_check() -> dict:
    """Liveness probe. Returns 200 when the server is up."""
    return {"status": "ok", "version": "0.1.0", "env": settings.APP_ENV}
