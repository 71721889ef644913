"""Tests for GitHub profile synchronisation helpers."""

import httpx
import pytest

from devlink.services.github import (
    MAX_SYNCED_SKILLS,
    GitHubClient,
    GitHubError,
    GitHubNotLinkedError,
    GitHubSnapshot,
    apply_snapshot,
    github_token_for,
)

API = "https://api.github.test"


def _client(handler) -> GitHubClient:
    return GitHubClient("gho_x", base_url=API, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_snapshot_collects_languages_and_topics() -> None:
    repos = [
        {"language": "Python", "topics": ["fastapi", "sqlalchemy"]},
        {"language": "Python", "topics": []},
        {"language": None, "topics": ["cli"]},
    ] + [{"language": f"Lang{i}", "topics": []} for i in range(30)]

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer gho_x"
        if request.url.path == "/user":
            return httpx.Response(200, json={"bio": "Builder", "twitter_username": "alexdev"})
        return httpx.Response(200, json=repos)

    client = _client(handler)
    snapshot = await client.fetch_snapshot()
    await client.aclose()

    assert snapshot.bio == "Builder"
    assert snapshot.skills[:4] == ["Python", "fastapi", "sqlalchemy", "cli"]
    assert len(snapshot.skills) == MAX_SYNCED_SKILLS


@pytest.mark.asyncio
async def test_profile_error_raises() -> None:
    client = _client(lambda request: httpx.Response(401, json={"message": "Bad credentials"}))
    with pytest.raises(GitHubError):
        await client.fetch_snapshot()


@pytest.mark.asyncio
async def test_repo_error_keeps_profile_fields() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/user":
            return httpx.Response(200, json={"location": "Oslo"})
        return httpx.Response(503)

    snapshot = await _client(handler).fetch_snapshot()

    assert snapshot.location == "Oslo"
    assert snapshot.skills == []


def test_apply_snapshot_overwrites_supplied_values(make_account) -> None:
    account = make_account(bio="Old", skills=["Go"], website="https://old.dev")

    apply_snapshot(
        account,
        GitHubSnapshot(bio="New", twitter_username="alexdev", skills=["Python"]),
    )

    assert account.bio == "New"
    assert account.website == "https://old.dev"
    assert account.twitter == "https://twitter.com/alexdev"
    assert account.skills == ["Python"]


def test_token_lookup(db_session, developer, github_identity) -> None:
    assert github_token_for(db_session, developer.id) == "gho_test_token"


def test_token_lookup_without_identity(db_session, developer) -> None:
    with pytest.raises(GitHubNotLinkedError):
        github_token_for(db_session, developer.id)
