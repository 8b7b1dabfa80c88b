"""
Category-Total Reconciler

DESIGN DECISION: The database is the source of truth; the Budget
worksheet only mirrors it. After any change to an expense we recompute
the full monthly total for its category/subcategory and OVERWRITE the
mapped cell. We never add the new amount to what the cell already holds:

- Rewriting the same total twice leaves the cell unchanged
- A failed or skipped sync is repaired by the next one
- Deleting an expense is handled exactly like adding one

Sync is best-effort. Sheet failures are logged and returned in a
ReconcileResult; they never undo the ledger write that triggered them.
"""

from decimal import Decimal
from typing import Optional, Union
from uuid import UUID

import structlog

from budget_dashboard.audit import AuditLogger
from budget_dashboard.config import GoogleSheetsSettings
from budget_dashboard.models.ledger import ExpenseRecord
from budget_dashboard.models.sync import MonthReconcileResult, ReconcileResult
from budget_dashboard.services.sheets.interface import (
    SheetNotConfiguredError,
    SheetSyncError,
    SpreadsheetSinkInterface,
)
from budget_dashboard.services.sheets.layout import (
    budget_cell,
    category_key,
    category_row,
)
from budget_dashboard.services.storage.interface import (
    LedgerStorageInterface,
    StorageError,
)
from budget_dashboard.utils.periods import month_bounds


logger = structlog.get_logger(__name__)


def sheet_number(amount: Decimal) -> Union[int, float]:
    """A Decimal as the sheet should receive it: 1500 rather than 1500.00."""
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)


def breakdown_formula(amounts: list[Decimal]) -> Union[int, float, str]:
    """
    Cell value showing how a total was built.

    Two or more amounts give "=1500+500+3000", which the sheet evaluates
    to the same total; a single amount is written as a number.
    """
    if not amounts:
        return 0
    if len(amounts) == 1:
        return sheet_number(amounts[0])
    return "=" + "+".join(str(sheet_number(a)) for a in amounts)


class CategoryTotalReconciler:
    """
    Keeps one Budget cell equal to the sum of its ledger rows.

    The sink is optional: without one every reconciliation is reported
    as skipped and nothing is written.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        sink: Optional[SpreadsheetSinkInterface] = None,
        settings: Optional[GoogleSheetsSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._sink = sink
        self._settings = settings or GoogleSheetsSettings()
        self._audit_logger = audit_logger

    @property
    def is_configured(self) -> bool:
        return self._sink is not None

    async def reconcile(
        self,
        category: str,
        subcategory: Optional[str],
        month_index: int,
        year: int,
        correlation_id: Optional[UUID] = None,
    ) -> ReconcileResult:
        """
        Recompute and rewrite the total for one category cell.

        Args:
            category: Budget category, e.g. "Maison"
            subcategory: Budget subcategory; None or "" when there is none
            month_index: 0 = January ... 11 = December
            year: Calendar year of the month

        Returns:
            ReconcileResult; never raises for sheet or store failures
        """
        subcategory = subcategory or ""
        key = category_key(category, subcategory)
        result = ReconcileResult(
            category=category,
            subcategory=subcategory,
            year=year,
            month_index=month_index,
            success=False,
        )

        if self._sink is None:
            result.skipped = True
            result.error = str(SheetNotConfiguredError())
            await self._log_skipped(key, result.error, correlation_id)
            return result

        cell = budget_cell(
            category,
            subcategory,
            month_index,
            sheet_name=self._settings.budget_sheet_name,
        )
        if cell is None:
            logger.info("no_row_mapping", key=key)
            result.success = True
            result.skipped = True
            await self._log_skipped(key, "no row mapping", correlation_id)
            return result
        result.cell = cell

        row = category_row(category, subcategory)
        month_start, next_month = month_bounds(year, month_index)
        try:
            month_expenses = await self._storage.list_expenses(
                date_from=month_start,
                date_before=next_month,
            )
        except StorageError as e:
            logger.error("reconcile_read_failed", key=key, cell=cell, error=str(e))
            result.error = str(e)
            if self._audit_logger:
                await self._audit_logger.log_store_query_failed(
                    operation=f"list expenses for {key}",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return result

        # Every spelling that folds onto this row shares the cell
        expenses = [
            e for e in month_expenses
            if category_row(e.category, e.subcategory_key) == row
        ]
        total = sum((e.amount for e in expenses), Decimal("0"))
        value = self._cell_value(expenses, total)
        result.total = total
        result.expense_count = len(expenses)
        result.written_value = str(value)

        try:
            self._sink.write_cell(cell, value)
        except SheetSyncError as e:
            logger.warning("sheet_sync_failed", key=key, cell=cell, error=str(e))
            result.error = str(e)
            if self._audit_logger:
                await self._audit_logger.log_sheet_sync_failed(
                    target=cell,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return result

        logger.info(
            "sheet_synced",
            cell=cell,
            total=str(total),
            expense_count=len(expenses),
        )
        result.success = True
        if self._audit_logger:
            await self._audit_logger.log_sheet_sync_completed(
                cell=cell,
                total=str(total),
                expense_count=len(expenses),
                correlation_id=correlation_id,
            )
        return result

    async def reconcile_expense(
        self,
        expense: ExpenseRecord,
        correlation_id: Optional[UUID] = None,
    ) -> ReconcileResult:
        """Reconcile the cell an expense belongs to."""
        return await self.reconcile(
            expense.category,
            expense.subcategory,
            expense.date.month - 1,
            expense.date.year,
            correlation_id=correlation_id,
        )

    async def reconcile_month(
        self,
        year: int,
        month_index: int,
        correlation_id: Optional[UUID] = None,
    ) -> MonthReconcileResult:
        """
        Reconcile every category/subcategory that has expenses in a month.

        Each Budget row is written once, even when several spellings of
        a pair (e.g. "Santé" and "Sante") map onto it.

        Safe to run repeatedly, e.g. from a scheduled job.

        Raises:
            StorageError: If the month's expenses cannot be listed
        """
        month_start, next_month = month_bounds(year, month_index)
        expenses = await self._storage.list_expenses(
            date_from=month_start,
            date_before=next_month,
        )

        pairs = sorted({(e.category, e.subcategory_key) for e in expenses})
        outcome = MonthReconcileResult(year=year, month_index=month_index)
        rows_done: set[int] = set()
        for category, subcategory in pairs:
            row = category_row(category, subcategory)
            if row is not None:
                if row in rows_done:
                    continue
                rows_done.add(row)
            outcome.results.append(
                await self.reconcile(
                    category,
                    subcategory,
                    month_index,
                    year,
                    correlation_id=correlation_id,
                )
            )

        logger.info(
            "month_reconciled",
            year=year,
            month=month_index + 1,
            synced=outcome.synced,
            skipped=outcome.skipped,
            failed=outcome.failed,
        )
        return outcome

    def _cell_value(self, expenses: list[ExpenseRecord], total: Decimal) -> Union[int, float, str]:
        if self._settings.write_breakdown_formula:
            # Oldest first, so the formula reads in entry order
            ordered = sorted(expenses, key=lambda e: e.created_at)
            return breakdown_formula([e.amount for e in ordered])
        return sheet_number(total)

    async def _log_skipped(
        self,
        key: str,
        reason: str,
        correlation_id: Optional[UUID],
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_sheet_sync_skipped(
                key=key,
                reason=reason,
                correlation_id=correlation_id,
            )
