# src/devlink/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .account import (
    AccountResponse,
    AdminAccountUpdate,
    GitHubSyncResponse,
    ProfileUpdateRequest,
    PublicProfile,
)
from .session import (
    AccessCheckResponse,
    ProfileViewRequest,
    ProfileViewResponse,
    RecentView,
    RecentViewsResponse,
    SessionResponse,
    TokenResponse,
    ViewerSummary,
)
from .toggle import (
    EndorsementRequest,
    EndorsementResponse,
    EndorsementSummary,
    FollowRequest,
    FollowResponse,
    LikeRequest,
    LikeResponse,
)

__all__ = [
    "AccountResponse", "AdminAccountUpdate", "GitHubSyncResponse",
    "ProfileUpdateRequest", "PublicProfile",
    "AccessCheckResponse", "ProfileViewRequest", "ProfileViewResponse",
    "RecentView", "RecentViewsResponse", "SessionResponse", "TokenResponse",
    "ViewerSummary",
    "EndorsementRequest", "EndorsementResponse", "EndorsementSummary",
    "FollowRequest", "FollowResponse", "LikeRequest", "LikeResponse",
]
