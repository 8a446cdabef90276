"""Evaluate one team-month offline and print the outcome as JSON.

No database needed: reads a MonthlyInput (camelCase or snake_case JSON) from a
file or stdin. Tier rates can be given in the JSON (`tierRates`) or with
--rate flags.

Usage
-----
$ python -m ops.evaluate_month input.json
$ echo '{"currentTier": "T3", "slotsPlayed": 10, "slotsWon": 6}' | python -m ops.evaluate_month -
$ python -m ops.evaluate_month input.json --rate T2=600
"""
from __future__ import annotations

import argparse
import json
import math
import sys
from typing import Dict, List

from app.tiering.evaluator import Tier, compute_monthly_outcome


def parse_rates(items: List[str]) -> Dict[Tier, float]:
    """`["T4=400", "godtier=1200"]` -> {Tier.T4: 400.0, ...}; ValueError on junk."""
    rates: Dict[Tier, float] = {}
    for item in items:
        name, sep, amount = item.partition("=")
        tier = Tier.lookup(name)
        if not sep or tier is None:
            raise ValueError(f"Expected TIER=AMOUNT with a known tier, got {item!r}")
        try:
            value = float(amount)
        except ValueError:
            value = math.nan
        if not math.isfinite(value):
            raise ValueError(f"Rate for {name} is not a number: {amount!r}")
        rates[tier] = value
    return rates


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Evaluate a team's monthly outcome")
    parser.add_argument("path", help="JSON file with the monthly input ('-' for stdin)")
    parser.add_argument("--rate", action="append", default=[], help="TIER=AMOUNT (repeatable)")
    args = parser.parse_args(argv)

    try:
        flags = parse_rates(args.rate)
    except ValueError as e:
        parser.error(str(e))

    if args.path == "-":
        payload = json.load(sys.stdin)
    else:
        with open(args.path, "r", encoding="utf-8") as fh:
            payload = json.load(fh)

    rates = dict(payload.get("tierRates") or payload.get("tier_rates") or {})
    rates.update({tier.value: amount for tier, amount in flags.items()})
    payload["tierRates"] = rates
    payload.pop("tier_rates", None)

    print(json.dumps(compute_monthly_outcome(payload), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
