"""
Main Orchestrator for Budget Dashboard

This module ties together all the components and defines the
end-to-end flows for:
1. Ledger writes (save/delete → reconcile the sheet cell → audit)
2. Sheet maintenance (month reconciliation, product sync, suggestions)

DESIGN DECISION: The orchestrator enforces the boundaries:
- The database write always comes first and is never rolled back
- The sheet is reconciled after every expense change, best-effort
- Every step is audited

Both the HTTP API and the Streamlit UI go through these flows; neither
talks to the store or the sheet directly.
"""

from datetime import date, timedelta
from typing import Optional
from uuid import UUID

import structlog

from budget_dashboard.audit import AuditLogger, create_correlation_id
from budget_dashboard.config import AppSettings, GoogleSheetsSettings, get_settings
from budget_dashboard.models.dashboard import ProductSuggestion
from budget_dashboard.models.ledger import (
    ExpenseCreate,
    ExpenseRecord,
    IncomeCreate,
    IncomeRecord,
    Product,
    ProductCreate,
    ProductSaleCreate,
    ProductSaleRecord,
)
from budget_dashboard.models.sync import (
    ExpenseWriteResult,
    MonthReconcileResult,
    ProductSyncResult,
    ReconcileResult,
)
from budget_dashboard.queries import DashboardQuery
from budget_dashboard.reconcile import CategoryTotalReconciler, ProductSalesReconciler
from budget_dashboard.services.sheets import SpreadsheetSinkInterface, create_sheet_sink
from budget_dashboard.services.storage import (
    LedgerStorageInterface,
    NotFoundError,
    SqlLedgerStorage,
    StorageError,
    StorageNotConfiguredError,
)


logger = structlog.get_logger(__name__)

DEFAULT_SALES_LIMIT = 50


def inclusive_end(date_to: Optional[date]) -> Optional[date]:
    """Turn an inclusive end date into the exclusive bound the store expects."""
    return date_to + timedelta(days=1) if date_to else None


class LedgerFlow:
    """
    Orchestrates every write to the ledger and its spreadsheet mirror.

    Flow for an expense:
    1. Save → insert into the store (errors propagate)
    2. Reconcile → recompute the month total and overwrite the cell
    3. Report → ExpenseWriteResult with sheet_synced

    Step 2 never raises: a sheet outage leaves the expense saved and
    the cell stale until the next reconciliation.
    """

    def __init__(
        self,
        storage: Optional[LedgerStorageInterface] = None,
        sheet_sink: Optional[SpreadsheetSinkInterface] = None,
        sheets_settings: Optional[GoogleSheetsSettings] = None,
        app_settings: Optional[AppSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._sheet_sink = sheet_sink
        self._app_settings = app_settings or AppSettings()
        self._audit_logger = audit_logger or AuditLogger()

        self._categories: Optional[CategoryTotalReconciler] = None
        self._products: Optional[ProductSalesReconciler] = None
        if storage is not None:
            self._categories = CategoryTotalReconciler(
                storage,
                sheet_sink,
                settings=sheets_settings,
                audit_logger=self._audit_logger,
            )
            self._products = ProductSalesReconciler(
                storage,
                sheet_sink,
                settings=sheets_settings,
                audit_logger=self._audit_logger,
            )

    @property
    def storage_configured(self) -> bool:
        return self._storage is not None

    @property
    def sheets_configured(self) -> bool:
        return self._sheet_sink is not None

    def _require_storage(self) -> LedgerStorageInterface:
        if self._storage is None:
            raise StorageNotConfiguredError()
        return self._storage

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    async def record_expense(
        self,
        expense: ExpenseCreate,
        correlation_id: Optional[UUID] = None,
    ) -> ExpenseWriteResult:
        """
        Save an expense and mirror its category total.

        Raises:
            StorageNotConfiguredError: If there is no database
            StorageError: If the insert fails (nothing is written to the sheet)
        """
        storage = self._require_storage()
        correlation_id = correlation_id or create_correlation_id()

        saved = await storage.insert_expense(expense)
        await self._audit_logger.log_expense_saved(
            expense_id=saved.id,
            category=f"{saved.category}/{saved.subcategory_key}",
            amount=str(saved.amount),
            correlation_id=correlation_id,
        )

        sync = await self._categories.reconcile_expense(saved, correlation_id=correlation_id)
        return self._write_result(saved, sync, "Saved")

    async def delete_expense(
        self,
        expense_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> ExpenseWriteResult:
        """
        Delete an expense and rewrite its cell without it.

        Raises:
            NotFoundError: If no expense has this id
        """
        storage = self._require_storage()
        correlation_id = correlation_id or create_correlation_id()

        deleted = await storage.delete_expense(expense_id)
        if deleted is None:
            raise NotFoundError(f"Expense not found: {expense_id}")
        await self._audit_logger.log_expense_deleted(
            expense_id=expense_id,
            correlation_id=correlation_id,
        )

        sync = await self._categories.reconcile_expense(deleted, correlation_id=correlation_id)
        return self._write_result(deleted, sync, "Deleted")

    async def list_expenses(
        self,
        category: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> list[ExpenseRecord]:
        """List expenses newest first; date_to is inclusive."""
        return await self._require_storage().list_expenses(
            category=category,
            date_from=date_from,
            date_before=inclusive_end(date_to),
            limit=limit,
        )

    @staticmethod
    def _write_result(
        expense: ExpenseRecord,
        sync: ReconcileResult,
        verb: str,
    ) -> ExpenseWriteResult:
        sheet_synced = sync.success and not sync.skipped
        if sheet_synced:
            message = f"{verb} in database and Google Sheets"
        elif sync.success:
            message = f"{verb} in database (no sheet cell for this category)"
        else:
            message = f"{verb} in database (sheet not updated: {sync.error})"
        return ExpenseWriteResult(
            expense=expense,
            sheet_synced=sheet_synced,
            sync=sync,
            message=message,
        )

    # -------------------------------------------------------------------------
    # Income
    # -------------------------------------------------------------------------

    async def record_income(
        self,
        income: IncomeCreate,
        correlation_id: Optional[UUID] = None,
    ) -> IncomeRecord:
        """Save an income row. Income has no sheet mirror."""
        saved = await self._require_storage().insert_income(income)
        await self._audit_logger.log_income_saved(
            income_id=saved.id,
            source=saved.source,
            amount=str(saved.amount),
            correlation_id=correlation_id,
        )
        return saved

    async def delete_income(
        self,
        income_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> IncomeRecord:
        deleted = await self._require_storage().delete_income(income_id)
        if deleted is None:
            raise NotFoundError(f"Income not found: {income_id}")
        await self._audit_logger.log_income_deleted(
            income_id=income_id,
            correlation_id=correlation_id,
        )
        return deleted

    async def list_income(
        self,
        source: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> list[IncomeRecord]:
        """List every income row, excluded sources included; date_to is inclusive."""
        return await self._require_storage().list_income(
            source=source,
            date_from=date_from,
            date_before=inclusive_end(date_to),
            limit=limit,
        )

    # -------------------------------------------------------------------------
    # T-WAKE products and sales
    # -------------------------------------------------------------------------

    async def create_product(
        self,
        product: ProductCreate,
        correlation_id: Optional[UUID] = None,
    ) -> Product:
        """
        Add a product to the catalogue.

        Raises:
            DuplicateError: If a product with this name already exists
        """
        storage = self._require_storage()
        saved = await storage.insert_product(product)
        await self._audit_logger.log_product_created(
            product_id=saved.id,
            name=saved.name,
            correlation_id=correlation_id,
        )
        return saved

    async def list_products(self) -> list[Product]:
        return await self._require_storage().list_products()

    async def record_sale(
        self,
        sale: ProductSaleCreate,
        correlation_id: Optional[UUID] = None,
    ) -> ProductSaleRecord:
        """
        Record a product sale.

        The products worksheet is not touched here; it is rewritten in
        bulk by sync_products.

        Raises:
            NotFoundError: If the product does not exist
        """
        saved = await self._require_storage().insert_product_sale(sale)
        await self._audit_logger.log_product_sale_saved(
            sale_id=saved.id,
            product_id=saved.product_id,
            quantity=saved.quantity,
            correlation_id=correlation_id,
        )
        return saved

    async def delete_sale(
        self,
        sale_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> ProductSaleRecord:
        deleted = await self._require_storage().delete_product_sale(sale_id)
        if deleted is None:
            raise NotFoundError(f"Sale not found: {sale_id}")
        await self._audit_logger.log_product_sale_deleted(
            sale_id=sale_id,
            correlation_id=correlation_id,
        )
        return deleted

    async def list_sales(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        product_id: Optional[UUID] = None,
        limit: Optional[int] = DEFAULT_SALES_LIMIT,
    ) -> list[ProductSaleRecord]:
        """Recent sales first, 50 by default."""
        return await self._require_storage().list_product_sales(
            date_from=date_from,
            date_before=inclusive_end(date_to),
            product_id=product_id,
            limit=limit,
        )

    # -------------------------------------------------------------------------
    # Sheet maintenance
    # -------------------------------------------------------------------------

    async def sync_category(
        self,
        category: str,
        subcategory: Optional[str],
        month_index: int,
        year: int,
    ) -> ReconcileResult:
        """Reconcile a single category cell on demand."""
        self._require_storage()
        return await self._categories.reconcile(
            category,
            subcategory,
            month_index,
            year,
            correlation_id=create_correlation_id(),
        )

    async def sync_month(self, year: int, month_index: int) -> MonthReconcileResult:
        """Reconcile every category cell with expenses in a month."""
        self._require_storage()
        correlation_id = create_correlation_id()
        try:
            return await self._categories.reconcile_month(
                year,
                month_index,
                correlation_id=correlation_id,
            )
        except StorageError as e:
            await self._audit_logger.log_store_query_failed(
                operation=f"reconcile month {year}-{month_index + 1:02d}",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

    async def sync_products(self, year: Optional[int] = None) -> ProductSyncResult:
        """Rewrite the products worksheet for a year (default: the configured sales year)."""
        self._require_storage()
        return await self._products.sync(
            year or self._app_settings.product_sales_year,
            correlation_id=create_correlation_id(),
        )

    async def product_suggestions(self) -> list[ProductSuggestion]:
        """
        Products listed in the worksheet but missing from the store.

        Raises:
            SheetNotConfiguredError: If there is no sheet
            SheetSyncError: If the worksheet cannot be read
        """
        self._require_storage()
        return await self._products.suggestions()


def create_app_components(
    use_storage: bool = True,
) -> tuple[LedgerFlow, Optional[DashboardQuery], Optional[SpreadsheetSinkInterface]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to connect to the database and the sheet.
                    Set to False to run without either.

    Returns:
        (ledger_flow, dashboard_query, sheet_sink)

    A missing database leaves dashboard_query as None and makes every
    ledger operation raise StorageNotConfiguredError; missing sheet
    credentials only switch the mirror off.
    """
    settings = get_settings()
    app_settings = settings.app
    sheets_settings = settings.google_sheets
    audit_logger = AuditLogger()

    storage = None
    sheet_sink = None
    dashboard_query = None

    if use_storage:
        try:
            storage = SqlLedgerStorage.from_settings(settings.database)
        except StorageNotConfiguredError as e:
            # Database not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            storage = None

        sheet_sink = create_sheet_sink(sheets_settings)

    if storage is not None:
        dashboard_query = DashboardQuery(storage, app_settings)

    ledger_flow = LedgerFlow(
        storage=storage,
        sheet_sink=sheet_sink,
        sheets_settings=sheets_settings,
        app_settings=app_settings,
        audit_logger=audit_logger,
    )

    return ledger_flow, dashboard_query, sheet_sink
