"""Re-run the monthly evaluation over stored rows for a month.

Same as the scheduled job: current tier defaults are applied, outcome columns
and `recalculated_at` are rewritten, team tiers are not touched.

Usage
-----
$ python -m ops.recalculate_month --month 2025-01
$ python -m ops.recalculate_month            # previous month
"""
from __future__ import annotations

import argparse
import logging

from app.core.config import settings
from app.jobs.scheduler import monthly_recalc_job, previous_month


def main() -> None:
    parser = argparse.ArgumentParser(description="Recalculate monthly outcomes")
    parser.add_argument("--month", default=None, help="YYYY-MM (defaults to previous month)")
    args = parser.parse_args()
    logging.basicConfig(level=settings.log_level.upper())

    month = args.month or previous_month()
    updated = monthly_recalc_job(month)
    print(f"[tierHub] {month}: {updated} rows recalculated")


if __name__ == "__main__":
    main()
