"""VentureNet API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map VentureNetError → {error, status} JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup via lifespan context manager
    - Every response carries X-Request-ID and produces one access-log line

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Uploaded pitch decks served from settings.upload_dir under /uploads
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from venturenet.api.error_handlers import register_error_handlers
from venturenet.api.routes import (
    admin, auth, connections, events, health, messages,
    notifications, profiles, recommendations, requests,
)
from venturenet.config import get_settings
from venturenet.infrastructure.database import close_db, init_db
from venturenet.infrastructure.observability import log_requests, setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    logger.info("VentureNet API started")
    yield
    logger.info("VentureNet API shutting down")
    await close_db()


app = FastAPI(
    title="VentureNet API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(log_requests)

register_error_handlers(app)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(profiles.router)
app.include_router(connections.router)
app.include_router(requests.router)
app.include_router(events.router)
app.include_router(messages.router)
app.include_router(notifications.router)
app.include_router(recommendations.router)
app.include_router(admin.router)

# Mounted after the API routers so /api/* takes precedence
os.makedirs(settings.upload_dir, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")
