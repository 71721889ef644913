"""Session, token and access-check schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SessionResponse(BaseModel):
    """Materialized session of the current request."""

    account_id: str
    username: str | None = None
    role: str
    approved: bool
    is_admin: bool


class TokenResponse(BaseModel):
    """Freshly issued session token."""

    access_token: str = Field(..., description="JWT session token")
    token_type: str = Field("bearer", description="Token type")


class AccessCheckResponse(BaseModel):
    """Guard decision for a page path."""

    path: str
    allowed: bool
    kind: str
    redirect_to: str | None = None


class ProfileViewRequest(BaseModel):
    user_id: str


class ProfileViewResponse(BaseModel):
    counted: bool


class ViewerSummary(BaseModel):
    id: str
    name: str | None = None
    username: str | None = None
    image: str | None = None

    model_config = ConfigDict(from_attributes=True)


class RecentView(BaseModel):
    viewer: ViewerSummary
    viewed_at: datetime


class RecentViewsResponse(BaseModel):
    """Latest signed-in visitors of the current account's profile."""

    views: list[RecentView]
    total_views: int
