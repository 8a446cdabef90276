"""SQLAlchemy ORM models for tierHub.

Tables:
- users
- teams
- tier_defaults
- team_monthly_stats
"""
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy.sql import func
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.db import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Team(Base):
    __tablename__ = "teams"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String, nullable=False)
    tier = Column(String, nullable=False, default="T4")
    status = Column(String, nullable=False, default="active")  # active | archived
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    monthly_stats = relationship("TeamMonthlyStat", back_populates="team")


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid)
    email = Column(String, nullable=False, unique=True)
    display_name = Column(String, nullable=True)
    role = Column(String, nullable=False, default="player")  # admin | manager | coach | player
    team_id = Column(String(36), ForeignKey("teams.id", ondelete="SET NULL"), nullable=True)
    # sha256 of the bearer token; raw token is shown once at issue time
    token_hash = Column(String(64), nullable=True, unique=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())


class TierDefault(Base):
    __tablename__ = "tier_defaults"

    tier: Mapped[str] = mapped_column(String, primary_key=True)
    default_slot_rate: Mapped[float] = mapped_column(Numeric(14, 2), nullable=False, default=0)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, server_default=func.now())


class TeamMonthlyStat(Base):
    __tablename__ = "team_monthly_stats"

    id = Column(String(36), primary_key=True, default=_uuid)
    team_id = Column(String(36), ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    month = Column(String(7), nullable=False)  # YYYY-MM

    # Inputs
    current_tier = Column(String, nullable=False, default="T4")
    slots_played = Column(Integer, nullable=False, default=0)
    slots_won = Column(Integer, nullable=False, default=0)
    slot_price_per_slot = Column(Numeric(14, 2), nullable=False, default=0)
    slot_cost_per_slot = Column(Numeric(14, 2), nullable=False, default=0)
    trial_phase = Column(String, nullable=False, default="none")  # none | trial | extended
    trial_weeks_used = Column(Integer, nullable=False, default=0)
    tournament_winnings = Column(Numeric(14, 2), nullable=False, default=0)
    estimated_next_month_tier_cost = Column(Numeric(14, 2), nullable=True)

    # Computed outputs
    win_percentage = Column(Numeric(6, 2), nullable=False, default=0)
    updated_tier = Column(String, nullable=False, default="T4")
    status_update = Column(String, nullable=False, default="retained")
    sponsorship_status = Column(String, nullable=False, default="none")
    trial_extension_granted = Column(Boolean, nullable=False, default=False)
    trial_extension_weeks = Column(Integer, nullable=False, default=0)
    monthly_prize_pool = Column(Numeric(14, 2), nullable=False, default=0)
    monthly_cost = Column(Numeric(14, 2), nullable=False, default=0)
    next_month_tier_cost = Column(Numeric(14, 2), nullable=False, default=0)
    surplus = Column(Numeric(14, 2), nullable=False, default=0)
    org_share = Column(Numeric(14, 2), nullable=False, default=0)
    team_share = Column(Numeric(14, 2), nullable=False, default=0)
    split_rule = Column(String, nullable=False, default="surplus_30_70")

    recalculated_at = Column(DateTime, nullable=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now())

    team = relationship("Team", back_populates="monthly_stats")

    __table_args__ = (
        Index("ix_team_monthly_stats_month", "month"),
        UniqueConstraint("team_id", "month", name="uq_team_monthly_stats_team_month"),
    )
