"""Bearer token -> user profile, plus role allow-lists.

Tokens are opaque strings issued by `ops.issue_token`; only their sha256 is
stored on `users.token_hash`.
"""
from __future__ import annotations

import hashlib
import secrets
from typing import Iterable

from fastapi import Depends, Header, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.core.models import User

MANAGE_ROLES = ("admin", "manager")


def hash_token(raw: str) -> str:
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def new_token() -> str:
    return "th_" + secrets.token_hex(24)


def get_current_user(
    authorization: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> User:
    if not authorization:
        raise HTTPException(status_code=401, detail="Authorization required")
    token = authorization.replace("Bearer ", "", 1).strip()
    if not token:
        raise HTTPException(status_code=401, detail="Invalid token")
    user = db.execute(
        select(User).where(User.token_hash == hash_token(token))
    ).scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=401, detail="Invalid token")
    return user


def require_role(user: User, roles: Iterable[str] = MANAGE_ROLES, detail: str = "Forbidden") -> None:
    if user.role not in tuple(roles):
        raise HTTPException(status_code=403, detail=detail)
