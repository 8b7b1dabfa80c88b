from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from budget_dashboard.api.deps import get_dashboard_query
from budget_dashboard.api.routes import dump
from budget_dashboard.queries import DashboardQuery
from budget_dashboard.utils.periods import parse_month


router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


def resolve_month(month: Optional[str]) -> tuple[int, int]:
    """(year, month_index) from "YYYY-MM", or the current month."""
    if not month:
        today = date.today()
        return today.year, today.month - 1
    try:
        return parse_month(month)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("")
async def get_dashboard(
    month: Optional[str] = None,
    query: DashboardQuery = Depends(get_dashboard_query),
):
    """Monthly KPIs, category breakdown, yearly series and recent rows."""
    year, month_index = resolve_month(month)
    summary = await query.monthly_summary(year, month_index)
    return {"success": True, **dump(summary)}
