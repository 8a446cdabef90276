"""Create database tables for tierHub.

This script imports the ORM models and calls `Base.metadata.create_all()` on the
configured DATABASE_URL. Handy for local SQLite/dev databases; production
databases are managed with the Alembic revisions under `migrations/versions`.

Usage
-----
$ python -m ops.create_tables
"""
from __future__ import annotations

from app.core.db import engine, Base  # engine is built from env in app.core.config
# Import models so SQLAlchemy knows about them before create_all()
from app.core import models  # noqa: F401  (imported for side effects)


def main() -> None:
    with engine.begin() as conn:
        Base.metadata.create_all(bind=conn)
    print("[tierHub] Tables created (or already exist).")

if __name__ == "__main__":
    main()
