"""Seed or update the default monthly slot rate per tier.

The rates feed the next-month tier cost estimate used by the monthly
evaluation (rate of the tier a team lands in x slots played).

Usage
-----
$ python -m ops.seed_tier_defaults --rate T4=400 --rate T3=500 --rate T2=600
$ python -m ops.seed_tier_defaults --rate godtier=1200
"""
from __future__ import annotations

import argparse
import logging

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.db import SessionLocal
from app.services.monthly_stats import list_tier_defaults, upsert_tier_default
from ops.evaluate_month import parse_rates


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed tier default slot rates")
    parser.add_argument("--rate", action="append", default=[], help="TIER=AMOUNT (repeatable)")
    args = parser.parse_args()
    logging.basicConfig(level=settings.log_level.upper())

    try:
        rates = parse_rates(args.rate)
    except ValueError as e:
        parser.error(str(e))
    if not rates:
        parser.error("at least one --rate is required")

    db: Session = SessionLocal()
    try:
        for tier, amount in rates.items():
            upsert_tier_default(db, tier, amount)
        for row in list_tier_defaults(db):
            print(f"{row.tier:>8}  {float(row.default_slot_rate):>12,.2f}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
