from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.auth import MANAGE_ROLES, get_current_user, require_role
from app.core.db import get_db
from app.core.models import User
from app.core.schemas import MonthlyInputIn, MonthlySaveOut, MonthlyStatOut, RecalculateOut
from app.services import monthly_stats
from app.tiering.evaluator import input_from_mapping

router = APIRouter(prefix="/teams/monthly", tags=["monthly"])


@router.get("", response_model=List[MonthlyStatOut])
def list_monthly(
    month: Optional[str] = Query(default=None),
    team_id: Optional[str] = Query(default=None, alias="teamId"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Monthly rows, newest month first.

    Admin/manager see every team; a coach only ever sees their own team.
    """
    if user.role == "coach":
        if team_id and team_id != user.team_id:
            return []
        team_id = user.team_id
        if not team_id:
            return []
    elif user.role not in MANAGE_ROLES:
        raise HTTPException(status_code=403, detail="Forbidden")

    rows = monthly_stats.list_monthly_stats(db, month=month, team_id=team_id)
    return [MonthlyStatOut.model_validate(r) for r in rows]


@router.post("", response_model=MonthlySaveOut)
def save_monthly(
    payload: MonthlyInputIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_role(user)
    if not payload.team_id or not payload.month:
        raise HTTPException(status_code=400, detail="teamId and month are required")

    data = input_from_mapping(payload.model_dump(exclude_none=True))
    try:
        row, outcome = monthly_stats.save_monthly_outcome(db, data, user_id=user.id)
    except monthly_stats.TeamNotFound:
        raise HTTPException(status_code=404, detail="Team not found")
    except Exception:
        raise HTTPException(status_code=500, detail="Failed to save monthly stats")

    return MonthlySaveOut(data=MonthlyStatOut.model_validate(row), outcome=outcome.to_dict())


@router.post("/recalculate", response_model=RecalculateOut)
def recalculate(
    month: str = Query(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_role(user)
    updated = monthly_stats.recalculate_month(db, month)
    return RecalculateOut(month=month, updated=updated)
