"""Monthly team stats: evaluate, upsert by (team, month), update the team.

The evaluator in `app.tiering.evaluator` is pure; this module is the part
that talks to the database:

- next-month cost estimates always use the stored `tier_defaults`
- one row per (team_id, month); saving again overwrites it (last write wins)
- promotions/demotions move `teams.tier`, exits archive the team
- `recalculate_month` refreshes stored outcomes without touching teams
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from app.core.models import Team, TeamMonthlyStat, TierDefault
from app.tiering.evaluator import (
    MonthlyInput,
    MonthlyOutcome,
    Tier,
    TrialPhase,
    evaluate,
)

log = logging.getLogger(__name__)


class TeamNotFound(Exception):
    pass


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _f(value) -> float:
    return float(value) if value is not None else 0.0


# ----------------------------
# Tier defaults
# ----------------------------

def list_tier_defaults(db: Session) -> List[TierDefault]:
    return db.execute(select(TierDefault).order_by(TierDefault.tier)).scalars().all()


def load_tier_rates(db: Session) -> Dict[Tier, float]:
    rates: Dict[Tier, float] = {}
    for row in list_tier_defaults(db):
        tier = Tier.lookup(row.tier)
        if tier is not None and row.default_slot_rate is not None:
            rates[tier] = float(row.default_slot_rate)
    return rates


def upsert_tier_default(db: Session, tier: Tier, rate: float) -> TierDefault:
    row = db.get(TierDefault, tier.value)
    if row:
        row.default_slot_rate = rate
        row.updated_at = _now()
    else:
        row = TierDefault(tier=tier.value, default_slot_rate=rate, updated_at=_now())
        db.add(row)
    db.commit()
    db.refresh(row)
    log.info("[tiering] tier default %s -> %s", tier.value, rate)
    return row


# ----------------------------
# Row <-> evaluator records
# ----------------------------

def _outcome_values(outcome: MonthlyOutcome) -> Dict[str, Any]:
    inc = outcome.incentives
    now = _now()
    return {
        "win_percentage": outcome.win_percentage,
        "updated_tier": outcome.updated_tier.value,
        "status_update": outcome.status_update,
        "sponsorship_status": outcome.sponsorship_status,
        "trial_extension_granted": outcome.trial.extension_granted,
        "trial_extension_weeks": outcome.trial.extension_weeks,
        "monthly_prize_pool": inc.monthly_prize_pool,
        "monthly_cost": inc.monthly_cost,
        "next_month_tier_cost": inc.next_month_tier_cost,
        "surplus": inc.surplus,
        "org_share": inc.org_share,
        "team_share": inc.team_share,
        "split_rule": inc.split_rule,
        "recalculated_at": now,
        "updated_at": now,
    }


def _input_values(data: MonthlyInput) -> Dict[str, Any]:
    return {
        "current_tier": data.current_tier.value,
        "slots_played": data.slots_played,
        "slots_won": data.slots_won,
        "slot_price_per_slot": data.slot_price_per_slot or 0,
        "slot_cost_per_slot": data.slot_cost_per_slot or 0,
        "trial_phase": data.trial_phase.value,
        "trial_weeks_used": data.trial_weeks_used or 0,
        "tournament_winnings": data.tournament_winnings or 0,
        "estimated_next_month_tier_cost": data.estimated_next_month_tier_cost,
    }


def _insert_for(db: Session):
    # ON CONFLICT upserts exist in both dialects; SQLite backs tests/dev
    return sqlite_insert if db.get_bind().dialect.name == "sqlite" else pg_insert


def input_from_row(row: TeamMonthlyStat, tier_rates: Optional[Dict[Tier, float]] = None) -> MonthlyInput:
    override = row.estimated_next_month_tier_cost
    return MonthlyInput(
        team_id=row.team_id,
        month=row.month,
        current_tier=Tier.parse(row.current_tier),
        slots_played=row.slots_played or 0,
        slots_won=row.slots_won or 0,
        slot_price_per_slot=_f(row.slot_price_per_slot),
        slot_cost_per_slot=_f(row.slot_cost_per_slot),
        tournament_winnings=_f(row.tournament_winnings),
        trial_phase=TrialPhase.parse(row.trial_phase),
        trial_weeks_used=row.trial_weeks_used or 0,
        tier_rates=dict(tier_rates or {}),
        estimated_next_month_tier_cost=float(override) if override is not None else None,
    )


# ----------------------------
# Team side effect
# ----------------------------

def _apply_team_transition(team: Team, outcome: MonthlyOutcome) -> None:
    if outcome.status_update == "exited":
        team.status = "archived"
        log.info("[tiering] team %s archived (exited)", team.id)
    elif outcome.status_update in ("promoted", "demoted"):
        log.info(
            "[tiering] team %s %s: %s -> %s",
            team.id, outcome.status_update, team.tier, outcome.updated_tier.value,
        )
        team.tier = outcome.updated_tier.value


# ----------------------------
# Public API
# ----------------------------

def list_monthly_stats(
    db: Session,
    month: Optional[str] = None,
    team_id: Optional[str] = None,
) -> List[TeamMonthlyStat]:
    stmt = select(TeamMonthlyStat).order_by(TeamMonthlyStat.month.desc())
    if month:
        stmt = stmt.where(TeamMonthlyStat.month == month)
    if team_id:
        stmt = stmt.where(TeamMonthlyStat.team_id == team_id)
    return db.execute(stmt).scalars().all()


def save_monthly_outcome(
    db: Session,
    data: MonthlyInput,
    user_id: Optional[str] = None,
) -> Tuple[TeamMonthlyStat, MonthlyOutcome]:
    """Evaluate `data` with the stored tier rates and persist it.

    Raises TeamNotFound if the team doesn't exist. Any DB error rolls back and
    propagates.
    """
    team = db.get(Team, data.team_id)
    if not team:
        raise TeamNotFound(data.team_id)

    data = replace(data, tier_rates=load_tier_rates(db))
    outcome = evaluate(data)

    values = {
        "team_id": data.team_id,
        "month": data.month,
        "created_by": user_id,
        **_input_values(data),
        **_outcome_values(outcome),
    }
    stmt = _insert_for(db)(TeamMonthlyStat).values(id=str(uuid.uuid4()), **values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[TeamMonthlyStat.team_id, TeamMonthlyStat.month],
        set_={
            **{k: stmt.excluded[k] for k in values if k not in ("team_id", "month", "created_by")},
            "created_by": func.coalesce(stmt.excluded.created_by, TeamMonthlyStat.created_by),
        },
    )

    try:
        db.execute(stmt)
        _apply_team_transition(team, outcome)
        db.commit()
    except Exception:
        db.rollback()
        log.exception("[tiering] failed to save monthly stats team=%s month=%s", data.team_id, data.month)
        raise

    row = db.execute(
        select(TeamMonthlyStat)
        .where(
            (TeamMonthlyStat.team_id == data.team_id)
            & (TeamMonthlyStat.month == data.month)
        )
        .execution_options(populate_existing=True)
    ).scalar_one()
    log.info(
        "[tiering] team=%s month=%s win=%.2f%% status=%s tier=%s split=%s",
        data.team_id, data.month, outcome.win_percentage, outcome.status_update,
        outcome.updated_tier.value, outcome.incentives.split_rule,
    )
    return row, outcome


def recalculate_month(db: Session, month: str) -> int:
    """Re-run the evaluator over every stored row for `month`.

    Uses current tier defaults. Team tier/status is left alone: the original
    save already applied the transition.
    """
    rates = load_tier_rates(db)
    rows = list_monthly_stats(db, month=month)
    try:
        for row in rows:
            for key, value in _outcome_values(evaluate(input_from_row(row, rates))).items():
                setattr(row, key, value)
        db.commit()
    except Exception:
        db.rollback()
        raise
    log.info("[tiering] recalculated %d rows for month=%s", len(rows), month)
    return len(rows)
