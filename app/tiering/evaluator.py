# app/tiering/evaluator.py
"""Monthly tier & incentive evaluation for sponsored teams.

Given one team's month (slots played/won, slot economics, tournament money,
trial status) this decides:
  - the win rate
  - the tier movement (promote / retain / demote / exit)
  - the sponsorship phase (trial, sponsored, exited)
  - whether a trial team earns its one-week extension
  - how the month's money is split between org and team

Pure: no DB, no clock, no logging. Bad numbers are clamped, never rejected,
so every input produces an outcome.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict, Literal, Mapping, Optional


class Tier(str, Enum):
    T4 = "T4"
    T3 = "T3"
    T2 = "T2"
    T1 = "T1"
    GODTIER = "godtier"

    @property
    def rank(self) -> int:
        return TIER_ORDER.index(self)

    def promote(self) -> "Tier":
        return TIER_ORDER[min(self.rank + 1, len(TIER_ORDER) - 1)]

    def demote(self) -> "Tier":
        return TIER_ORDER[max(self.rank - 1, 0)]

    @classmethod
    def lookup(cls, value: Any) -> Optional["Tier"]:
        if isinstance(value, Tier):
            return value
        text = str(value or "").strip().lower()
        for tier in cls:
            if text == tier.value.lower():
                return tier
        return None

    @classmethod
    def parse(cls, value: Any) -> "Tier":
        """Like lookup(), but unknown names land on the bottom tier."""
        return cls.lookup(value) or cls.T4


# lowest -> highest
TIER_ORDER = [Tier.T4, Tier.T3, Tier.T2, Tier.T1, Tier.GODTIER]


class TrialPhase(str, Enum):
    NONE = "none"
    TRIAL = "trial"
    EXTENDED = "extended"

    @classmethod
    def parse(cls, value: Any) -> "TrialPhase":
        if isinstance(value, TrialPhase):
            return value
        try:
            return cls(str(value or "none").strip().lower())
        except ValueError:
            return cls.NONE


StatusUpdate = Literal["promoted", "retained", "demoted", "exited"]
SponsorshipStatus = Literal["trial", "sponsored", "exited", "none"]
SplitRule = Literal["surplus_30_70", "tournament_override_50_50"]

RETAIN_FLOOR = 35.0          # below this: exit / demote
PROMOTE_LINE = 50.0          # established teams need strictly more than this
TOURNAMENT_OVERRIDE_MIN = 20000
ORG_SURPLUS_SHARE = 0.3
ORG_TOURNAMENT_SHARE = 0.5
TRIAL_EXTENSION_WEEKS = 1


@dataclass
class MonthlyInput:
    team_id: str
    month: str                              # YYYY-MM
    current_tier: Tier = Tier.T4
    slots_played: int = 0
    slots_won: int = 0
    slot_price_per_slot: float = 0          # prize per slot won
    slot_cost_per_slot: float = 0           # cost per slot played
    tournament_winnings: float = 0
    trial_phase: TrialPhase = TrialPhase.NONE
    trial_weeks_used: int = 0
    tier_rates: Dict[Tier, float] = field(default_factory=dict)
    estimated_next_month_tier_cost: Optional[float] = None
    team_name: Optional[str] = None


@dataclass
class TrialDecision:
    extension_granted: bool = False
    extension_weeks: int = 0


@dataclass
class Incentives:
    monthly_prize_pool: float
    monthly_cost: float
    next_month_tier_cost: float
    surplus: float
    org_share: float
    team_share: float
    split_rule: SplitRule


@dataclass
class MonthlyOutcome:
    win_percentage: float
    updated_tier: Tier
    status_update: StatusUpdate
    sponsorship_status: SponsorshipStatus
    trial: TrialDecision
    incentives: Incentives

    def to_dict(self) -> Dict[str, Any]:
        """camelCase shape used by the HTTP layer and stored payloads."""
        return {
            "winPercentage": self.win_percentage,
            "updatedTier": self.updated_tier.value,
            "statusUpdate": self.status_update,
            "sponsorshipStatus": self.sponsorship_status,
            "trial": {
                "extensionGranted": self.trial.extension_granted,
                "extensionWeeks": self.trial.extension_weeks,
            },
            "incentives": {
                "monthlyPrizePool": self.incentives.monthly_prize_pool,
                "monthlyCost": self.incentives.monthly_cost,
                "nextMonthTierCost": self.incentives.next_month_tier_cost,
                "surplus": self.incentives.surplus,
                "orgShare": self.incentives.org_share,
                "teamShare": self.incentives.team_share,
                "splitRule": self.incentives.split_rule,
            },
        }


def _round_half_up(x: float) -> int:
    # Math.round semantics: .5 always goes up
    return int(math.floor(x + 0.5))


def _two_decimals(x: float) -> float:
    return float(Decimal(x).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _split(amount: float, org_ratio: float) -> tuple[float, float]:
    """Org share rounds first; team gets the remainder so shares sum exactly."""
    org = _round_half_up(amount * org_ratio)
    return org, amount - org


def _trial_decision(win_pct: float, phase: TrialPhase):
    """Regime A: teams still on (or extended from) a trial sponsorship."""
    if win_pct >= PROMOTE_LINE:
        return "retained", "sponsored", TrialDecision()
    if win_pct >= RETAIN_FLOOR and phase is TrialPhase.TRIAL:
        return "retained", "trial", TrialDecision(True, TRIAL_EXTENSION_WEEKS)
    # second miss after an extension, or under the floor
    return "exited", "exited", TrialDecision()


def _established_decision(win_pct: float, tier: Tier):
    """Regime B: established teams move along the tier ladder."""
    if win_pct > PROMOTE_LINE:
        new_tier = tier.promote()
        return new_tier, ("retained" if new_tier is tier else "promoted"), "none"
    if win_pct >= RETAIN_FLOOR:
        return tier, "retained", "none"
    if tier is Tier.T4:
        return tier, "exited", "exited"
    return tier.demote(), "demoted", "none"


def evaluate(data: MonthlyInput) -> MonthlyOutcome:
    slots_played = max(0, data.slots_played or 0)
    slots_won = max(0, min(slots_played, data.slots_won or 0))
    win_pct = 0.0 if slots_played == 0 else (slots_won / slots_played) * 100

    updated_tier = data.current_tier
    trial = TrialDecision()
    if data.trial_phase in (TrialPhase.TRIAL, TrialPhase.EXTENDED):
        status, sponsorship, trial = _trial_decision(win_pct, data.trial_phase)
    else:
        updated_tier, status, sponsorship = _established_decision(win_pct, data.current_tier)

    slot_cost = data.slot_cost_per_slot or 0
    monthly_prize_pool = (data.slot_price_per_slot or 0) * slots_won
    monthly_cost = slot_cost * slots_played

    # next month is priced at the tier the team lands in, not the one it left
    if data.estimated_next_month_tier_cost is not None:
        next_month_tier_cost = data.estimated_next_month_tier_cost
    else:
        rate = (data.tier_rates or {}).get(updated_tier)
        next_month_tier_cost = (rate if rate is not None else slot_cost) * slots_played

    surplus = monthly_prize_pool - (monthly_cost + next_month_tier_cost)
    tournament = data.tournament_winnings or 0

    split_rule: SplitRule = "surplus_30_70"
    org_share, team_share = 0, 0
    if tournament > TOURNAMENT_OVERRIDE_MIN:
        split_rule = "tournament_override_50_50"
        org_share, team_share = _split(tournament, ORG_TOURNAMENT_SHARE)
    elif surplus > 0:
        org_share, team_share = _split(surplus, ORG_SURPLUS_SHARE)

    return MonthlyOutcome(
        win_percentage=_two_decimals(win_pct),
        updated_tier=updated_tier,
        status_update=status,
        sponsorship_status=sponsorship,
        trial=trial,
        incentives=Incentives(
            monthly_prize_pool=monthly_prize_pool,
            monthly_cost=monthly_cost,
            next_month_tier_cost=next_month_tier_cost,
            surplus=surplus,
            org_share=org_share,
            team_share=team_share,
            split_rule=split_rule,
        ),
    )


# ----------------------------
# dict in / dict out
# ----------------------------

_FIELD_ALIASES = {
    "teamId": "team_id",
    "teamName": "team_name",
    "currentTier": "current_tier",
    "slotsPlayed": "slots_played",
    "slotsWon": "slots_won",
    "slotPricePerSlot": "slot_price_per_slot",
    "slotCostPerSlot": "slot_cost_per_slot",
    "tournamentWinnings": "tournament_winnings",
    "trialPhase": "trial_phase",
    "trialWeeksUsed": "trial_weeks_used",
    "tierRates": "tier_rates",
    "estimatedNextMonthTierCost": "estimated_next_month_tier_cost",
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _num(value: Any, default: float = 0) -> float:
    if _is_number(value):
        return value
    if isinstance(value, str):
        try:
            parsed = float(value)
        except ValueError:
            return default
        return parsed if math.isfinite(parsed) else default
    return default


def parse_tier_rates(raw: Mapping[Any, Any] | None) -> Dict[Tier, float]:
    """Keep only known tiers with numeric rates."""
    rates: Dict[Tier, float] = {}
    for key, value in (raw or {}).items():
        tier = Tier.lookup(key)
        if tier is not None and _is_number(value):
            rates[tier] = value
    return rates


def input_from_mapping(payload: Mapping[str, Any]) -> MonthlyInput:
    """Build a MonthlyInput from a camelCase or snake_case mapping.

    Slot counts are whole numbers: fractional values are truncated toward zero
    (10.9 -> 10) before clamping. Non-numeric values count as 0.
    """
    data = {_FIELD_ALIASES.get(k, k): v for k, v in (payload or {}).items()}
    override = data.get("estimated_next_month_tier_cost")
    return MonthlyInput(
        team_id=str(data.get("team_id") or ""),
        month=str(data.get("month") or ""),
        current_tier=Tier.parse(data.get("current_tier")),
        slots_played=int(_num(data.get("slots_played"))),
        slots_won=int(_num(data.get("slots_won"))),
        slot_price_per_slot=_num(data.get("slot_price_per_slot")),
        slot_cost_per_slot=_num(data.get("slot_cost_per_slot")),
        tournament_winnings=_num(data.get("tournament_winnings")),
        trial_phase=TrialPhase.parse(data.get("trial_phase")),
        trial_weeks_used=int(_num(data.get("trial_weeks_used"))),
        tier_rates=parse_tier_rates(data.get("tier_rates")),
        estimated_next_month_tier_cost=override if _is_number(override) else None,
        team_name=data.get("team_name"),
    )


def compute_monthly_outcome(payload: Mapping[str, Any]) -> Dict[str, Any]:
    return evaluate(input_from_mapping(payload)).to_dict()
