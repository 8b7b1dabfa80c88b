"""
Sheet Sync Result Models

Outcomes of mirroring ledger totals into the spreadsheet.
A failed sync is a normal, reportable result - never an exception -
because the ledger write that triggered it has already succeeded.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from budget_dashboard.models.ledger import ExpenseRecord, Money


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReconcileResult(_CamelModel):
    """
    Result of reconciling one (category, subcategory, month) cell.

    skipped=True means nothing was written: either the pair has no row in
    the worksheet (success=True) or the mirror is not configured
    (success=False).
    """

    category: str
    subcategory: str
    year: int
    month_index: int = Field(..., ge=0, le=11)

    success: bool
    skipped: bool = False
    cell: Optional[str] = None
    total: Optional[Money] = None
    expense_count: int = 0
    written_value: Optional[str] = None
    error: Optional[str] = None


class MonthReconcileResult(_CamelModel):
    """Result of reconciling every category seen in one month."""

    year: int
    month_index: int = Field(..., ge=0, le=11)
    results: list[ReconcileResult] = Field(default_factory=list)

    @property
    def synced(self) -> int:
        return sum(1 for r in self.results if r.success and not r.skipped)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.skipped)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success and not r.skipped)

    @property
    def errors(self) -> list[str]:
        return [
            f"{r.category}/{r.subcategory}: {r.error}"
            for r in self.results
            if r.error
        ]

    @property
    def total(self) -> Decimal:
        return sum((r.total or Decimal("0") for r in self.results), Decimal("0"))


class ProductSyncResult(_CamelModel):
    """Result of mirroring monthly product quantities into the products worksheet."""

    year: int
    success: bool
    updated_rows: int = 0
    unmatched_products: list[str] = Field(default_factory=list)
    error: Optional[str] = None


class ExpenseWriteResult(_CamelModel):
    """
    Outcome of adding or deleting an expense.

    The ledger write has succeeded whenever this is returned;
    sheet_synced only tells whether the mirror caught up.
    """

    expense: ExpenseRecord
    sheet_synced: bool
    sync: ReconcileResult
    message: str
