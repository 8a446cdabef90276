import os

# Point the app at a throwaway in-memory SQLite DB before any app module is imported
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"

import pytest
from fastapi.testclient import TestClient

from app.core.auth import hash_token
from app.core.db import Base, SessionLocal, engine
from app.core import models


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def team(db):
    row = models.Team(name="Nova Esports", tier="T3")
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture
def users(db, team):
    """One user per role; token for each is '<role>-token'."""
    out = {}
    for role in ("admin", "manager", "coach", "player"):
        user = models.User(
            email=f"{role}@example.com",
            role=role,
            team_id=team.id if role in ("coach", "player") else None,
            token_hash=hash_token(f"{role}-token"),
        )
        db.add(user)
        out[role] = user
    db.commit()
    return out


@pytest.fixture
def client(db):
    from app.api.main import app

    return TestClient(app)


@pytest.fixture
def auth_headers(users):
    def _headers(role: str) -> dict:
        return {"Authorization": f"Bearer {role}-token"}

    return _headers
