"""Account and profile schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

HANDLE_PATTERN = r"^[A-Za-z0-9][A-Za-z0-9_-]{0,63}$"


class PublicProfile(BaseModel):
    """Profile fields visible to everyone."""

    id: str
    username: str | None = None
    name: str | None = None
    image: str | None = None
    role: Literal["developer", "client"]
    bio: str | None = None
    location: str | None = None
    website: str | None = None
    github: str | None = None
    twitter: str | None = None
    skills: list[str] = Field(default_factory=list)
    followers_count: int = 0
    endorsements_count: int = 0
    profile_views: int = 0
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AccountResponse(PublicProfile):
    """Profile of the signed-in account, including private settings."""

    email: str
    approved: bool
    is_admin: bool
    email_notifications: bool


class ProfileUpdateRequest(BaseModel):
    """Schema for updating the signed-in account's profile.

    Only the fields present in the request are changed.
    """

    username: str | None = Field(None, pattern=HANDLE_PATTERN)
    name: str | None = Field(None, max_length=255)
    bio: str | None = Field(None, max_length=2000)
    location: str | None = Field(None, max_length=255)
    website: str | None = Field(None, max_length=500)
    twitter: str | None = Field(None, max_length=500)
    skills: list[str] | None = Field(None, max_length=50)
    email_notifications: bool | None = None

    @field_validator("skills")
    @classmethod
    def normalize_skills(cls, value: list[str] | None) -> list[str] | None:
        """Strip blanks and drop case-insensitive duplicates, keeping first spelling."""
        if value is None:
            return None
        seen: set[str] = set()
        cleaned: list[str] = []
        for skill in value:
            skill = skill.strip()
            if not skill or skill.lower() in seen:
                continue
            seen.add(skill.lower())
            cleaned.append(skill)
        return cleaned


class GitHubSyncResponse(BaseModel):
    """Result of a GitHub profile sync."""

    success: bool
    updated: dict[str, bool | int]


class AdminAccountUpdate(BaseModel):
    """Approval/admin changes applied by an administrator."""

    approved: bool | None = None
    is_admin: bool | None = None
