from datetime import date

import pytest

from app.core.db import SessionLocal
from app.core.models import Team, TeamMonthlyStat
from app.jobs.scheduler import monthly_recalc_job, previous_month
from app.services import monthly_stats
from app.tiering.evaluator import MonthlyInput, Tier, TrialPhase


def _input(team_id, **kw) -> MonthlyInput:
    kw.setdefault("month", "2025-01")
    return MonthlyInput(team_id=team_id, **kw)


def test_save_promotes_team_and_persists_outcome(db, team, users):
    monthly_stats.upsert_tier_default(db, Tier.T2, 600)

    row, outcome = monthly_stats.save_monthly_outcome(
        db,
        _input(team.id, current_tier=Tier.T3, slots_played=10, slots_won=6,
               slot_price_per_slot=1000, slot_cost_per_slot=500),
        user_id=users["admin"].id,
    )

    assert outcome.status_update == "promoted"
    assert row.updated_tier == "T2"
    assert float(row.next_month_tier_cost) == 6000
    assert float(row.surplus) == -5000
    assert row.created_by == users["admin"].id
    assert row.recalculated_at is not None
    db.refresh(team)
    assert team.tier == "T2"
    assert team.status == "active"


def test_stored_tier_rates_replace_caller_rates(db, team):
    monthly_stats.upsert_tier_default(db, Tier.T3, 100)
    _, outcome = monthly_stats.save_monthly_outcome(
        db,
        _input(team.id, current_tier=Tier.T3, slots_played=10, slots_won=4,
               tier_rates={Tier.T3: 999}),
    )
    assert outcome.incentives.next_month_tier_cost == 1000


def test_save_twice_upserts_single_row(db, team):
    monthly_stats.save_monthly_outcome(db, _input(team.id, current_tier=Tier.T3, slots_played=10, slots_won=4))
    row, outcome = monthly_stats.save_monthly_outcome(
        db, _input(team.id, current_tier=Tier.T3, slots_played=10, slots_won=5)
    )

    rows = db.query(TeamMonthlyStat).filter_by(team_id=team.id, month="2025-01").all()
    assert len(rows) == 1
    assert rows[0].id == row.id
    assert rows[0].slots_won == 5
    assert outcome.status_update == "retained"


def test_exit_archives_team(db, team):
    team.tier = "T4"
    db.commit()
    _, outcome = monthly_stats.save_monthly_outcome(
        db, _input(team.id, current_tier=Tier.T4, slots_played=10, slots_won=1)
    )
    assert outcome.status_update == "exited"
    db.refresh(team)
    assert team.status == "archived"
    assert team.tier == "T4"


def test_demotion_moves_team_down(db, team):
    monthly_stats.save_monthly_outcome(db, _input(team.id, current_tier=Tier.T3, slots_played=10, slots_won=2))
    db.refresh(team)
    assert team.tier == "T4"


def test_trial_extension_leaves_team_alone(db, team):
    row, _ = monthly_stats.save_monthly_outcome(
        db, _input(team.id, current_tier=Tier.T3, trial_phase=TrialPhase.TRIAL, slots_played=10, slots_won=4)
    )
    assert row.trial_extension_granted is True
    assert row.trial_extension_weeks == 1
    assert row.sponsorship_status == "trial"
    db.refresh(team)
    assert team.tier == "T3"
    assert team.status == "active"


def test_unknown_team_raises(db):
    with pytest.raises(monthly_stats.TeamNotFound):
        monthly_stats.save_monthly_outcome(db, _input("missing-team", slots_played=1))


def test_list_filters_and_orders_newest_first(db, team):
    other = Team(name="Other", tier="T2")
    db.add(other)
    db.commit()
    for month in ("2025-01", "2025-03", "2025-02"):
        monthly_stats.save_monthly_outcome(db, _input(team.id, month=month, current_tier=Tier.T3,
                                                      slots_played=10, slots_won=4))
    monthly_stats.save_monthly_outcome(db, _input(other.id, month="2025-02", current_tier=Tier.T2,
                                                  slots_played=10, slots_won=4))

    assert [r.month for r in monthly_stats.list_monthly_stats(db, team_id=team.id)] == [
        "2025-03", "2025-02", "2025-01",
    ]
    assert len(monthly_stats.list_monthly_stats(db, month="2025-02")) == 2


def test_recalculate_uses_current_rates_and_keeps_team(db, team):
    row, _ = monthly_stats.save_monthly_outcome(
        db, _input(team.id, current_tier=Tier.T3, slots_played=10, slots_won=7,
                   slot_price_per_slot=1000, slot_cost_per_slot=100)
    )
    db.refresh(team)
    assert team.tier == "T2"
    assert float(row.next_month_tier_cost) == 1000

    monthly_stats.upsert_tier_default(db, Tier.T2, 50)
    assert monthly_stats.recalculate_month(db, "2025-01") == 1

    db.refresh(row)
    db.refresh(team)
    assert float(row.next_month_tier_cost) == 500
    assert float(row.surplus) == 7000 - (1000 + 500)
    assert float(row.org_share) == 1650
    assert float(row.team_share) == 3850
    assert team.tier == "T2"


def test_upsert_tier_default_updates_in_place(db):
    monthly_stats.upsert_tier_default(db, Tier.T4, 100)
    monthly_stats.upsert_tier_default(db, Tier.T4, 250)
    rows = monthly_stats.list_tier_defaults(db)
    assert len(rows) == 1
    assert monthly_stats.load_tier_rates(db) == {Tier.T4: 250.0}


def test_monthly_recalc_job_counts_rows(db, team):
    monthly_stats.save_monthly_outcome(db, _input(team.id, month="2024-12", current_tier=Tier.T3,
                                                  slots_played=10, slots_won=4))
    assert monthly_recalc_job("2024-12") == 1
    assert monthly_recalc_job("2023-01") == 0


def test_previous_month_wraps_year():
    assert previous_month(date(2025, 1, 15)) == "2024-12"
    assert previous_month(date(2025, 10, 1)) == "2025-09"


def test_overlapping_saves_for_same_month_keep_one_row(db, team, monkeypatch):
    """A second writer inserting the row mid-save must not fail the first."""
    real_load = monthly_stats.load_tier_rates
    state = {"raced": False}

    def load_with_competing_save(session):
        if not state["raced"]:
            state["raced"] = True
            other = SessionLocal()
            try:
                monthly_stats.save_monthly_outcome(
                    other, _input(team.id, current_tier=Tier.T3, slots_played=10, slots_won=4)
                )
            finally:
                other.close()
        return real_load(session)

    monkeypatch.setattr(monthly_stats, "load_tier_rates", load_with_competing_save)

    row, outcome = monthly_stats.save_monthly_outcome(
        db, _input(team.id, current_tier=Tier.T3, slots_played=10, slots_won=5)
    )

    assert state["raced"] is True
    rows = db.query(TeamMonthlyStat).filter_by(team_id=team.id, month="2025-01").all()
    assert len(rows) == 1
    assert rows[0].id == row.id
    assert rows[0].slots_won == 5
    assert outcome.status_update == "retained"
