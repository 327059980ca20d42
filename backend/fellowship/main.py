"""
FastAPI app entrypoint.

Community backend: follows, friends, events, prayer requests, sermons, push tokens and notification preferences.
Push notifications go out after the response via background tasks (see services.notifications).
"""
import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

# Load .env from backend/ before any app code
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from fellowship.api.routes import (
    events,
    follows,
    friends,
    notifications,
    prayer_requests,
    push,
    sermon_discussions,
    sermon_series,
    sermons,
)
from fellowship.config import settings
from fellowship.core.constants import API_PREFIX
from fellowship.core.errors import store_error_handler

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Fellowship API", version="0.1.0")

# CORS: dev origins (Expo web, Vite) + optional CORS_ORIGINS env (comma-separated)
_cors_origins = [
    "http://localhost:8081",
    "http://127.0.0.1:8081",
    "http://localhost:19006",
    "http://127.0.0.1:19006",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
_cors_origins.extend(settings.cors_origin_list())
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(SQLAlchemyError, store_error_handler)

app.include_router(push.router, prefix=f"{API_PREFIX}/users", tags=["push"])
app.include_router(follows.router, prefix=f"{API_PREFIX}/users", tags=["follows"])
app.include_router(friends.router, prefix=f"{API_PREFIX}/users", tags=["friends"])
app.include_router(notifications.router, prefix=f"{API_PREFIX}/notifications", tags=["notifications"])
app.include_router(events.router, prefix=f"{API_PREFIX}/events", tags=["events"])
app.include_router(prayer_requests.router, prefix=f"{API_PREFIX}/prayer-requests", tags=["prayer-requests"])
app.include_router(sermon_series.router, prefix=f"{API_PREFIX}/sermon-series", tags=["sermons"])
app.include_router(sermons.router, prefix=f"{API_PREFIX}/sermons", tags=["sermons"])
app.include_router(sermon_discussions.router, prefix=f"{API_PREFIX}/sermon-discussions", tags=["sermons"])


@app.get("/", include_in_schema=False)
def root():
    """Root: point to API docs and health."""
    return {"message": "Fellowship API", "docs": "/docs", "health": "/health"}


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
