"""create users, teams, tier defaults and team monthly stats

Revision ID: 20261019_create_tierhub_tables
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "20261019_create_tierhub_tables"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _money(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.Numeric(14, 2), nullable=nullable, server_default=None if nullable else "0")


def upgrade() -> None:
    op.create_table(
        "teams",
        sa.Column("id", sa.String(36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("tier", sa.String(), nullable=False, server_default="T4"),
        sa.Column("status", sa.String(), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True, nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("display_name", sa.String(), nullable=True),
        sa.Column("role", sa.String(), nullable=False, server_default="player"),
        sa.Column("team_id", sa.String(36), sa.ForeignKey("teams.id", ondelete="SET NULL"), nullable=True),
        sa.Column("token_hash", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.UniqueConstraint("token_hash", name="uq_users_token_hash"),
    )

    op.create_table(
        "tier_defaults",
        sa.Column("tier", sa.String(), primary_key=True, nullable=False),
        sa.Column("default_slot_rate", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
    )

    op.create_table(
        "team_monthly_stats",
        sa.Column("id", sa.String(36), primary_key=True, nullable=False),
        sa.Column("team_id", sa.String(36), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False),
        sa.Column("month", sa.String(7), nullable=False),
        sa.Column("current_tier", sa.String(), nullable=False, server_default="T4"),
        sa.Column("slots_played", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("slots_won", sa.Integer(), nullable=False, server_default="0"),
        _money("slot_price_per_slot"),
        _money("slot_cost_per_slot"),
        sa.Column("trial_phase", sa.String(), nullable=False, server_default="none"),
        sa.Column("trial_weeks_used", sa.Integer(), nullable=False, server_default="0"),
        _money("tournament_winnings"),
        _money("estimated_next_month_tier_cost", nullable=True),
        sa.Column("win_percentage", sa.Numeric(6, 2), nullable=False, server_default="0"),
        sa.Column("updated_tier", sa.String(), nullable=False, server_default="T4"),
        sa.Column("status_update", sa.String(), nullable=False, server_default="retained"),
        sa.Column("sponsorship_status", sa.String(), nullable=False, server_default="none"),
        sa.Column("trial_extension_granted", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("trial_extension_weeks", sa.Integer(), nullable=False, server_default="0"),
        _money("monthly_prize_pool"),
        _money("monthly_cost"),
        _money("next_month_tier_cost"),
        _money("surplus"),
        _money("org_share"),
        _money("team_share"),
        sa.Column("split_rule", sa.String(), nullable=False, server_default="surplus_30_70"),
        sa.Column("recalculated_at", sa.DateTime(), nullable=True),
        sa.Column("created_by", sa.String(36), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.UniqueConstraint("team_id", "month", name="uq_team_monthly_stats_team_month"),
    )
    op.create_index("ix_team_monthly_stats_month", "team_monthly_stats", ["month"])


def downgrade() -> None:
    op.drop_index("ix_team_monthly_stats_month", table_name="team_monthly_stats")
    op.drop_table("team_monthly_stats")
    op.drop_table("tier_defaults")
    op.drop_table("users")
    op.drop_table("teams")
