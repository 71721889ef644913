# src/devlink/api/v1/endpoints/admin.py
"""Administrative account management."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select

from devlink.api.v1.dependencies import AdminDep, SessionDep
from devlink.models import Account
from devlink.schemas.account import AccountResponse, AdminAccountUpdate
from devlink.services.identity import bump_auth_version

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=list[AccountResponse])
async def list_users(
    db: SessionDep,
    admin: AdminDep,
    approved: bool | None = None,
    role: str | None = None,
) -> list[Account]:
    """List accounts, newest first, optionally filtered by approval or role."""
    stmt = select(Account).order_by(Account.created_at.desc())
    if approved is not None:
        stmt = stmt.where(Account.approved == approved)
    if role is not None:
        stmt = stmt.where(Account.role == role)
    return list(db.scalars(stmt))


@router.patch("/users/{user_id}", response_model=AccountResponse)
async def update_user(
    user_id: str,
    payload: AdminAccountUpdate,
    db: SessionDep,
    admin: AdminDep,
) -> Account:
    """Change approval or admin rights; outstanding tokens of the account are re-derived."""
    account = db.get(Account, user_id)
    if account is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    changed = False
    if payload.approved is not None and payload.approved != account.approved:
        account.approved = payload.approved
        changed = True
    if payload.is_admin is not None and payload.is_admin != account.is_admin:
        account.is_admin = payload.is_admin
        changed = True

    if changed:
        bump_auth_version(account)
        db.commit()
        db.refresh(account)
        logger.info(
            "Admin %s updated account %s (approved=%s, is_admin=%s)",
            admin.account_id,
            account.id,
            account.approved,
            account.is_admin,
        )
    return account
