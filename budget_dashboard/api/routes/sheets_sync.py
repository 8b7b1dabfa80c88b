from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from budget_dashboard.api.deps import Components, get_components, get_ledger_flow
from budget_dashboard.api.routes import dump
from budget_dashboard.api.routes.dashboard import resolve_month
from budget_dashboard.config import get_settings
from budget_dashboard.orchestrator import LedgerFlow


router = APIRouter(prefix="/api/sync-to-sheets", tags=["sheets"])


class CategorySyncRequest(BaseModel):
    """One category cell to reconcile."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    category: str = Field(..., min_length=1)
    subcategory: Optional[str] = None
    month_index: int = Field(..., ge=0, le=11, description="0 = January")
    year: int = Field(..., ge=2000, le=2100)


@router.get("")
async def sync_info(components: Components = Depends(get_components)):
    """What a sync would write to, and whether it can."""
    sheets = get_settings().google_sheets
    configured = components.sheet_sink is not None
    return {
        "success": True,
        "sheetsConfigured": configured,
        "storageConfigured": components.ledger_flow.storage_configured,
        "budgetSheet": sheets.budget_sheet_name,
        "productsSheet": sheets.products_sheet_name,
        "message": (
            "POST ?month=YYYY-MM to rewrite every category total of that month"
            if configured
            else "Google Sheets not configured"
        ),
    }


@router.post("")
async def sync_month(
    month: Optional[str] = None,
    flow: LedgerFlow = Depends(get_ledger_flow),
):
    """Rewrite every category cell with expenses in the month (default: current)."""
    year, month_index = resolve_month(month)
    outcome = await flow.sync_month(year, month_index)
    return {
        "success": flow.sheets_configured and outcome.failed == 0,
        "year": year,
        "month": month_index + 1,
        "synced": outcome.synced,
        "skipped": outcome.skipped,
        "failed": outcome.failed,
        "total": float(outcome.total),
        "errors": outcome.errors,
        "results": [dump(r) for r in outcome.results],
    }


@router.post("/category")
async def sync_category(
    request: CategorySyncRequest,
    flow: LedgerFlow = Depends(get_ledger_flow),
):
    result = await flow.sync_category(
        request.category,
        request.subcategory,
        request.month_index,
        request.year,
    )
    return {"success": result.success, **dump(result)}
