"""T-WAKE product sub-ledger: catalogue, sales, stats and sheet sync."""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from budget_dashboard.api.deps import get_dashboard_query, get_ledger_flow
from budget_dashboard.api.routes import dump, dump_all
from budget_dashboard.models.ledger import ProductCreate, ProductSaleCreate, ProductSaleRecord
from budget_dashboard.orchestrator import LedgerFlow
from budget_dashboard.queries import DashboardQuery


router = APIRouter(prefix="/api/t-wake", tags=["t-wake"])


def sale_payload(sale: ProductSaleRecord) -> dict:
    payload = dump(sale)
    payload["revenue"] = float(sale.revenue)
    payload["margin"] = float(sale.margin)
    return payload


@router.get("/products")
async def list_products(flow: LedgerFlow = Depends(get_ledger_flow)):
    products = await flow.list_products()
    return {"success": True, "products": dump_all(products)}


@router.post("/products")
async def create_product(
    product: ProductCreate,
    flow: LedgerFlow = Depends(get_ledger_flow),
):
    saved = await flow.create_product(product)
    return {"success": True, "product": dump(saved)}


@router.get("/products/suggestions")
async def product_suggestions(flow: LedgerFlow = Depends(get_ledger_flow)):
    """Products in the worksheet that are not in the catalogue yet."""
    suggestions = await flow.product_suggestions()
    return {"success": True, "suggestions": dump_all(suggestions)}


@router.get("/transactions")
async def list_transactions(
    start_date: Optional[date] = Query(default=None, alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
    product_id: Optional[UUID] = Query(default=None, alias="productId"),
    limit: int = Query(default=50, ge=1, le=1000),
    flow: LedgerFlow = Depends(get_ledger_flow),
):
    sales = await flow.list_sales(
        date_from=start_date,
        date_to=end_date,
        product_id=product_id,
        limit=limit,
    )
    return {
        "success": True,
        "transactions": [sale_payload(s) for s in sales],
        "count": len(sales),
    }


@router.post("/transactions")
async def create_transaction(
    sale: ProductSaleCreate,
    flow: LedgerFlow = Depends(get_ledger_flow),
):
    saved = await flow.record_sale(sale)
    return {"success": True, "transaction": sale_payload(saved)}


@router.delete("/transactions")
async def delete_transaction(
    sale_id: UUID = Query(..., alias="id"),
    flow: LedgerFlow = Depends(get_ledger_flow),
):
    deleted = await flow.delete_sale(sale_id)
    return {"success": True, "message": "Sale deleted", "transaction": sale_payload(deleted)}


@router.get("/stats")
async def product_stats(
    reference_date: Optional[date] = Query(default=None, alias="date"),
    query: DashboardQuery = Depends(get_dashboard_query),
):
    """Revenue, profit and units for today, this week, month and year."""
    stats = await query.product_stats(reference_date)
    return {"success": True, "stats": dump(stats)}


@router.get("/data")
async def product_data(
    year: Optional[int] = Query(default=None, ge=2000, le=2100),
    flow: LedgerFlow = Depends(get_ledger_flow),
    query: DashboardQuery = Depends(get_dashboard_query),
):
    """Catalogue plus units sold per product per month."""
    products = await flow.list_products()
    sales = await query.product_monthly_sales(year)
    return {"success": True, "products": dump_all(products), "sales": dump_all(sales)}


@router.post("/sync")
async def sync_products(
    year: Optional[int] = Query(default=None, ge=2000, le=2100),
    flow: LedgerFlow = Depends(get_ledger_flow),
):
    """Rewrite the products worksheet from the sales ledger."""
    result = await flow.sync_products(year)
    return dump(result)
