"""Pydantic response/request schemas for tierHub API.

These map ORM rows to API-friendly shapes. Monthly input arrives camelCase
(`teamId`, `slotsPlayed`, ...) and snake_case names are accepted too.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------- Monthly evaluation ----------
class MonthlyInputIn(BaseModel):
    team_id: Optional[str] = Field(None, alias="teamId")
    team_name: Optional[str] = Field(None, alias="teamName")
    month: Optional[str] = None
    current_tier: Optional[str] = Field("T4", alias="currentTier")
    slots_played: Optional[float] = Field(0, alias="slotsPlayed")
    slots_won: Optional[float] = Field(0, alias="slotsWon")
    slot_price_per_slot: Optional[float] = Field(0, alias="slotPricePerSlot")
    slot_cost_per_slot: Optional[float] = Field(0, alias="slotCostPerSlot")
    tournament_winnings: Optional[float] = Field(0, alias="tournamentWinnings")
    trial_phase: Optional[str] = Field("none", alias="trialPhase")
    trial_weeks_used: Optional[float] = Field(0, alias="trialWeeksUsed")
    estimated_next_month_tier_cost: Optional[float] = Field(None, alias="estimatedNextMonthTierCost")
    model_config = ConfigDict(populate_by_name=True)


class MonthlyStatOut(BaseModel):
    id: str
    team_id: str
    month: str
    current_tier: str
    slots_played: int
    slots_won: int
    slot_price_per_slot: float
    slot_cost_per_slot: float
    trial_phase: str
    trial_weeks_used: int
    tournament_winnings: float
    estimated_next_month_tier_cost: Optional[float] = None
    win_percentage: float
    updated_tier: str
    status_update: str
    sponsorship_status: str
    trial_extension_granted: bool
    trial_extension_weeks: int
    monthly_prize_pool: float
    monthly_cost: float
    next_month_tier_cost: float
    surplus: float
    org_share: float
    team_share: float
    split_rule: str
    recalculated_at: Optional[datetime] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class MonthlySaveOut(BaseModel):
    data: MonthlyStatOut
    outcome: Dict[str, Any]


class RecalculateOut(BaseModel):
    month: str
    updated: int


# ---------- Tier defaults ----------
class TierDefaultOut(BaseModel):
    tier: str
    default_slot_rate: float
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class TierDefaultIn(BaseModel):
    tier: Optional[str] = None
    default_slot_rate: Any = None
