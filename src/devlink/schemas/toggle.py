"""Follow, like and endorsement request/response schemas."""

from pydantic import BaseModel, Field


class FollowRequest(BaseModel):
    """Schema for toggling a follow."""

    following_id: str | None = Field(None, description="Account to follow or unfollow")


class FollowResponse(BaseModel):
    """Follow state after the toggle."""

    following: bool


class LikeRequest(BaseModel):
    """Schema for toggling a like on exactly one project or blog post."""

    project_id: int | None = None
    post_id: int | None = None


class LikeResponse(BaseModel):
    """Like state and the target's current like count."""

    liked: bool
    likes_count: int


class EndorsementRequest(BaseModel):
    """Schema for toggling an endorsement of a declared skill."""

    user_id: str | None = Field(None, description="Account being endorsed")
    skill: str | None = Field(None, description="One of the account's declared skills")


class EndorsementResponse(BaseModel):
    endorsed: bool
    skill: str


class EndorsementSummary(BaseModel):
    """Per-skill endorsement counts for one account."""

    user_id: str
    total: int
    skills: dict[str, int]
