from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.auth import get_current_user, require_role
from app.core.db import get_db
from app.core.models import User
from app.core.schemas import TierDefaultIn, TierDefaultOut
from app.services import monthly_stats
from app.tiering.evaluator import Tier

router = APIRouter(prefix="/tier-defaults", tags=["tier-defaults"])


@router.get("", response_model=List[TierDefaultOut])
def list_defaults(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rows = monthly_stats.list_tier_defaults(db)
    return [TierDefaultOut.model_validate(r) for r in rows]


@router.put("")
def update_default(
    payload: TierDefaultIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Set the default monthly slot rate for one tier (admin/manager)."""
    require_role(user, detail="Insufficient permissions")
    rate = payload.default_slot_rate
    if not payload.tier or isinstance(rate, bool) or not isinstance(rate, (int, float)):
        raise HTTPException(status_code=400, detail="tier and default_slot_rate required")
    tier = Tier.lookup(payload.tier)
    if tier is None:
        raise HTTPException(status_code=400, detail=f"Unknown tier: {payload.tier}")

    monthly_stats.upsert_tier_default(db, tier, rate)
    return {"success": True}
