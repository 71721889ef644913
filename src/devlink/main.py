# src/devlink/main.py
"""Main entry point for the DevLink application."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.middleware.sessions import SessionMiddleware

from devlink import __version__
from devlink.api.middleware import AccessGuardMiddleware
from devlink.api.v1 import (
    access_router,
    admin_router,
    auth_router,
    endorsements_router,
    follows_router,
    likes_router,
    profile_views_router,
    users_router,
)
from devlink.core.settings import settings
from devlink.services.notifications import NotificationDispatcher
from devlink.services.rate_limit import RateLimiter

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    app.state.rate_limiter = RateLimiter.from_settings()
    app.state.notification_dispatcher = NotificationDispatcher(settings.notification_webhook_url)
    logger.info("%s %s started", settings.app_name, settings.app_version)
    try:
        yield
    finally:
        await app.state.notification_dispatcher.close()
        app.state.rate_limiter.close()


# Initialize FastAPI app
app = FastAPI(
    title="DevLink API",
    description="Developer portfolio and client matching API",
    version=__version__,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# OAuth state is kept in the signed session cookie between login and callback.
app.add_middleware(SessionMiddleware, secret_key=settings.secret_key)

app.add_middleware(AccessGuardMiddleware)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(follows_router, prefix="/api/v1")
app.include_router(likes_router, prefix="/api/v1")
app.include_router(endorsements_router, prefix="/api/v1")
app.include_router(profile_views_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")
app.include_router(access_router, prefix="/api/v1")


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "DevLink API",
        "version": __version__,
        "description": "Developer portfolio and client matching API",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("devlink.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
