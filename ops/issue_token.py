"""Create (or update) a user and issue a fresh API bearer token.

The raw token is printed once; only its sha256 is stored. Re-running for the
same email rotates the token.

Usage
-----
$ python -m ops.issue_token --email boss@org.gg --role admin
$ python -m ops.issue_token --email coach@org.gg --role coach --team-id <uuid>
"""
from __future__ import annotations

import argparse

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.auth import hash_token, new_token
from app.core.db import SessionLocal
from app.core.models import Team, User

ROLES = ("admin", "manager", "coach", "player")


def issue(db: Session, email: str, role: str, team_id: str | None = None, name: str | None = None) -> str:
    if team_id and not db.get(Team, team_id):
        raise SystemExit(f"Team not found: {team_id}")
    user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if user is None:
        user = User(email=email)
        db.add(user)
    user.role = role
    user.display_name = name or user.display_name or email
    if team_id:
        user.team_id = team_id
    raw = new_token()
    user.token_hash = hash_token(raw)
    db.commit()
    return raw


def main() -> None:
    parser = argparse.ArgumentParser(description="Issue an API token for a user")
    parser.add_argument("--email", required=True)
    parser.add_argument("--role", choices=ROLES, default="player")
    parser.add_argument("--team-id", default=None, help="Team the user belongs to (coaches/players)")
    parser.add_argument("--name", default=None)
    args = parser.parse_args()

    db: Session = SessionLocal()
    try:
        raw = issue(db, args.email, args.role, args.team_id, args.name)
    finally:
        db.close()
    print(f"[tierHub] token for {args.email} ({args.role}): {raw}")


if __name__ == "__main__":
    main()
