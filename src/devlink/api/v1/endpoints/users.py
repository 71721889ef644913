# src/devlink/api/v1/endpoints/users.py
"""Profile endpoints for the signed-in account and public profiles."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from devlink.api.v1.dependencies import CurrentAccountDep, SessionDep
from devlink.models import Account
from devlink.schemas.account import (
    AccountResponse,
    GitHubSyncResponse,
    ProfileUpdateRequest,
    PublicProfile,
)
from devlink.services.github import (
    GitHubClient,
    GitHubError,
    GitHubNotLinkedError,
    apply_snapshot,
    github_token_for,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

GitHubClientFactory = Callable[[str], GitHubClient]


def get_github_client_factory() -> GitHubClientFactory:
    """Return the callable that builds a GitHub client from an access token."""
    return GitHubClient


GitHubClientFactoryDep = Annotated[GitHubClientFactory, Depends(get_github_client_factory)]


@router.get("/me", response_model=AccountResponse)
async def get_me(account: CurrentAccountDep) -> Account:
    """Return the signed-in account."""
    return account


@router.patch("/me", response_model=AccountResponse)
async def update_me(
    payload: ProfileUpdateRequest,
    account: CurrentAccountDep,
    db: SessionDep,
) -> Account:
    """Update profile fields of the signed-in account.

    Raises:
        HTTPException: 409 if the requested username is taken.
    """
    changes = payload.model_dump(exclude_unset=True)
    new_username = changes.pop("username", None)

    if new_username and new_username != account.username:
        taken = db.scalar(
            select(Account.id).where(Account.username == new_username, Account.id != account.id)
        )
        if taken is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken")
        account.username = new_username

    for field, value in changes.items():
        if field == "email_notifications" and value is None:
            continue
        setattr(account, field, [] if field == "skills" and value is None else value)

    try:
        db.commit()
    except IntegrityError as err:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username already taken",
        ) from err
    db.refresh(account)
    return account


@router.post("/me/sync-github", response_model=GitHubSyncResponse)
async def sync_github(
    account: CurrentAccountDep,
    db: SessionDep,
    client_factory: GitHubClientFactoryDep,
) -> GitHubSyncResponse:
    """Refresh bio, location, website, twitter and skills from GitHub."""
    try:
        token = github_token_for(db, account.id)
    except GitHubNotLinkedError as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err

    client = client_factory(token)
    try:
        snapshot = await client.fetch_snapshot()
    except GitHubError as err:
        logger.warning("GitHub sync failed for account %s: %s", account.id, err)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to fetch GitHub data",
        ) from err
    finally:
        await client.aclose()

    updated = apply_snapshot(account, snapshot)
    db.commit()
    logger.info("Synced GitHub profile for account %s", account.id)
    return GitHubSyncResponse(success=True, updated=updated)


@router.get("/{username}", response_model=PublicProfile)
async def get_public_profile(username: str, db: SessionDep) -> Account:
    """Return the public profile behind a handle."""
    account = db.scalar(select(Account).where(Account.username == username))
    if account is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return account
