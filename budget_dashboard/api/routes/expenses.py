from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from budget_dashboard.api.deps import get_ledger_flow
from budget_dashboard.api.routes import dump, dump_all
from budget_dashboard.models.ledger import ExpenseCreate
from budget_dashboard.orchestrator import LedgerFlow


router = APIRouter(prefix="/api/expenses", tags=["expenses"])


@router.get("")
async def list_expenses(
    start_date: Optional[date] = Query(default=None, alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
    category: Optional[str] = None,
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    flow: LedgerFlow = Depends(get_ledger_flow),
):
    """Expenses newest first; endDate is inclusive."""
    rows = await flow.list_expenses(
        category=category,
        date_from=start_date,
        date_to=end_date,
        limit=limit,
    )
    return {"success": True, "data": dump_all(rows), "count": len(rows)}


@router.post("")
async def create_expense(
    expense: ExpenseCreate,
    flow: LedgerFlow = Depends(get_ledger_flow),
):
    result = await flow.record_expense(expense)
    return {
        "success": True,
        "sheetSynced": result.sheet_synced,
        "message": result.message,
        "data": dump(result.expense),
        "sync": dump(result.sync),
    }


@router.delete("")
async def delete_expense(
    expense_id: UUID = Query(..., alias="id"),
    flow: LedgerFlow = Depends(get_ledger_flow),
):
    result = await flow.delete_expense(expense_id)
    return {
        "success": True,
        "sheetSynced": result.sheet_synced,
        "message": result.message,
        "data": dump(result.expense),
    }
