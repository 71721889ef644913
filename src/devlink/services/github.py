"""GitHub profile synchronisation.

Reads the signed-in developer's GitHub profile and repository languages with
the access token stored on their linked identity, and copies the values onto
the account.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx
from sqlalchemy import select
from sqlalchemy.orm import Session

from devlink.core.settings import settings
from devlink.models import Account, LinkedIdentity

logger = logging.getLogger(__name__)

MAX_SYNCED_SKILLS = 20
USER_AGENT = "DevLink-App"


class GitHubError(RuntimeError):
    """Raised when the GitHub API answers with an error."""


class GitHubNotLinkedError(LookupError):
    """Raised when the account has no usable GitHub identity."""


@dataclass
class GitHubSnapshot:
    """Subset of GitHub data used to update a profile."""

    bio: str | None = None
    location: str | None = None
    blog: str | None = None
    twitter_username: str | None = None
    skills: list[str] = field(default_factory=list)


class GitHubClient:
    """Minimal async client for the endpoints the profile sync needs."""

    def __init__(
        self,
        access_token: str,
        *,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.github_api_base_url,
            timeout=settings.github_http_timeout_seconds,
            transport=transport,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/vnd.github.v3+json",
                "User-Agent": USER_AGENT,
            },
        )

    async def _get(self, path: str, **params: Any) -> Any:
        try:
            response = await self._client.get(path, params=params or None)
        except httpx.HTTPError as e:
            raise GitHubError(f"GitHub request to {path} failed: {e}") from e
        if response.status_code != httpx.codes.OK:
            raise GitHubError(f"GitHub returned {response.status_code} for {path}")
        return response.json()

    async def fetch_snapshot(self) -> GitHubSnapshot:
        """Fetch the user profile and derive skills from repository languages/topics."""
        user = await self._get("/user")
        snapshot = GitHubSnapshot(
            bio=user.get("bio") or None,
            location=user.get("location") or None,
            blog=user.get("blog") or None,
            twitter_username=user.get("twitter_username") or None,
        )
        try:
            repos = await self._get("/user/repos", per_page=100)
        except GitHubError as e:
            # Skills are optional; the profile fields are still worth syncing.
            logger.warning("Skipping skill extraction: %s", e)
            return snapshot

        seen: dict[str, None] = {}
        for repo in repos:
            if repo.get("language"):
                seen.setdefault(repo["language"], None)
            for topic in repo.get("topics") or []:
                seen.setdefault(topic, None)
        snapshot.skills = list(seen)[:MAX_SYNCED_SKILLS]
        return snapshot

    async def aclose(self) -> None:
        await self._client.aclose()


def github_token_for(db: Session, account_id: str) -> str:
    """Return the stored GitHub access token for ``account_id``.

    Raises:
        GitHubNotLinkedError: If no GitHub identity with a token is linked.
    """
    token = db.scalar(
        select(LinkedIdentity.access_token).where(
            LinkedIdentity.account_id == account_id,
            LinkedIdentity.provider == "github",
        )
    )
    if not token:
        raise GitHubNotLinkedError("GitHub account not linked")
    return token


def apply_snapshot(account: Account, snapshot: GitHubSnapshot) -> dict[str, Any]:
    """Copy every value GitHub supplied onto ``account``.

    Unlike the sign-in merge this is an explicit user action, so supplied
    values replace existing ones.
    """
    if snapshot.bio:
        account.bio = snapshot.bio
    if snapshot.location:
        account.location = snapshot.location
    if snapshot.blog:
        account.website = snapshot.blog
    if snapshot.twitter_username:
        account.twitter = f"https://twitter.com/{snapshot.twitter_username}"
    if snapshot.skills:
        account.skills = list(snapshot.skills)
    return {
        "bio": bool(account.bio),
        "location": bool(account.location),
        "website": bool(account.website),
        "twitter": bool(account.twitter),
        "skills": len(account.skills or []),
    }
