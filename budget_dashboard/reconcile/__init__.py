"""Reconcilers that keep the spreadsheet mirror equal to the ledger."""

from budget_dashboard.reconcile.category_totals import (
    CategoryTotalReconciler,
    breakdown_formula,
    sheet_number,
)
from budget_dashboard.reconcile.product_sales import ProductSalesReconciler

__all__ = [
    "CategoryTotalReconciler",
    "ProductSalesReconciler",
    "breakdown_formula",
    "sheet_number",
]
