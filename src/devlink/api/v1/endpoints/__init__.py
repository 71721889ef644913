# src/devlink/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .access import router as access_router
from .admin import router as admin_router
from .auth import router as auth_router
from .endorsements import router as endorsements_router
from .follows import router as follows_router
from .likes import router as likes_router
from .profile_views import router as profile_views_router
from .users import router as users_router

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
