from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from budget_dashboard.api.deps import get_ledger_flow
from budget_dashboard.api.routes import dump, dump_all
from budget_dashboard.models.ledger import IncomeCreate
from budget_dashboard.orchestrator import LedgerFlow


router = APIRouter(prefix="/api/income", tags=["income"])


@router.get("")
async def list_income(
    start_date: Optional[date] = Query(default=None, alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
    source: Optional[str] = None,
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    flow: LedgerFlow = Depends(get_ledger_flow),
):
    rows = await flow.list_income(
        source=source,
        date_from=start_date,
        date_to=end_date,
        limit=limit,
    )
    return {"success": True, "data": dump_all(rows), "count": len(rows)}


@router.post("")
async def create_income(
    income: IncomeCreate,
    flow: LedgerFlow = Depends(get_ledger_flow),
):
    saved = await flow.record_income(income)
    return {"success": True, "data": dump(saved)}


@router.delete("")
async def delete_income(
    income_id: UUID = Query(..., alias="id"),
    flow: LedgerFlow = Depends(get_ledger_flow),
):
    deleted = await flow.delete_income(income_id)
    return {"success": True, "message": "Income deleted", "data": dump(deleted)}
