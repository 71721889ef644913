# src/devlink/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    access_router,
    admin_router,
    auth_router,
    endorsements_router,
    follows_router,
    likes_router,
    profile_views_router,
    users_router,
)

__all__ = [
    "access_router",
    "admin_router",
    "auth_router",
    "endorsements_router",
    "follows_router",
    "likes_router",
    "profile_views_router",
    "users_router",
]
