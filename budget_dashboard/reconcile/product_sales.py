"""
Product Sales Reconciler

Mirrors T-WAKE sales into the products worksheet and reads it back for
product suggestions.

Like the category totals, each product row is OVERWRITTEN with the
quantities recomputed from the ledger for the whole year, so running
the sync twice changes nothing.
"""

from collections import defaultdict
from datetime import date
from typing import Optional
from uuid import UUID

import structlog

from budget_dashboard.audit import AuditLogger
from budget_dashboard.config import GoogleSheetsSettings
from budget_dashboard.models.dashboard import ProductSuggestion
from budget_dashboard.models.sync import ProductSyncResult
from budget_dashboard.services.sheets.interface import (
    CellValue,
    SheetNotConfiguredError,
    SheetSyncError,
    SpreadsheetSinkInterface,
)
from budget_dashboard.services.sheets.layout import (
    PRODUCT_FIRST_ROW,
    parse_french_number,
    product_catalog_range,
    product_months_range,
    product_names_range,
)
from budget_dashboard.services.storage.interface import (
    LedgerStorageInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


def _name_key(name: str) -> str:
    return name.strip().casefold()


class ProductSalesReconciler:
    """Keeps the products worksheet in line with the sales sub-ledger."""

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
    def sheet_name(self) -> str:
        return self._settings.products_sheet_name

    async def monthly_quantities(self, year: int) -> dict[str, list[int]]:
        """Units sold per product name, as 12 monthly counts (Jan..Dec)."""
        sales = await self._storage.list_product_sales(
            date_from=date(year, 1, 1),
            date_before=date(year + 1, 1, 1),
        )
        quantities: dict[str, list[int]] = defaultdict(lambda: [0] * 12)
        for sale in sales:
            if sale.product is None:
                continue
            quantities[sale.product.name][sale.date.month - 1] += sale.quantity
        return dict(quantities)

    async def sync(
        self,
        year: int,
        correlation_id: Optional[UUID] = None,
    ) -> ProductSyncResult:
        """
        Write the year's monthly quantities into the products worksheet.

        Product rows are found by name in column A; products with sales
        but no row are reported as unmatched and left alone. Months
        without sales are written blank.
        """
        target = f"{self.sheet_name} {year}"

        if self._sink is None:
            error = str(SheetNotConfiguredError())
            if self._audit_logger:
                await self._audit_logger.log_sheet_sync_skipped(
                    key=target,
                    reason=error,
                    correlation_id=correlation_id,
                )
            return ProductSyncResult(year=year, success=False, error=error)

        try:
            quantities = await self.monthly_quantities(year)
        except StorageError as e:
            logger.error("product_sales_read_failed", year=year, error=str(e))
            if self._audit_logger:
                await self._audit_logger.log_store_query_failed(
                    operation=f"list product sales for {year}",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return ProductSyncResult(year=year, success=False, error=str(e))

        by_key = {_name_key(name): (name, months) for name, months in quantities.items()}
        updates: list[tuple[str, list[list[CellValue]]]] = []
        matched: set[str] = set()

        try:
            rows = self._sink.read_range(product_names_range(self.sheet_name))
            for offset, row in enumerate(rows):
                if not row or not row[0].strip():
                    continue
                entry = by_key.get(_name_key(row[0]))
                if entry is None:
                    continue
                name, months = entry
                matched.add(name)
                values: list[CellValue] = [qty if qty else "" for qty in months]
                updates.append(
                    (product_months_range(self.sheet_name, PRODUCT_FIRST_ROW + offset), [values])
                )

            self._sink.write_ranges(updates)
        except SheetSyncError as e:
            logger.warning("product_sync_failed", year=year, error=str(e))
            if self._audit_logger:
                await self._audit_logger.log_sheet_sync_failed(
                    target=target,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return ProductSyncResult(year=year, success=False, error=str(e))

        unmatched = sorted(name for name in quantities if name not in matched)
        logger.info(
            "product_sales_synced",
            year=year,
            updated_rows=len(updates),
            unmatched=len(unmatched),
        )
        if self._audit_logger:
            await self._audit_logger.log_product_sync_completed(
                sheet_name=self.sheet_name,
                year=year,
                updated_rows=len(updates),
                correlation_id=correlation_id,
            )
        return ProductSyncResult(
            year=year,
            success=True,
            updated_rows=len(updates),
            unmatched_products=unmatched,
        )

    async def suggestions(self) -> list[ProductSuggestion]:
        """
        Products listed in the worksheet that are not in the store yet.

        Prices are read from columns B and C in French number format.

        Raises:
            SheetNotConfiguredError: If there is no sink
            SheetSyncError: If the worksheet cannot be read
            StorageError: If existing products cannot be listed
        """
        if self._sink is None:
            raise SheetNotConfiguredError()

        existing = {_name_key(p.name) for p in await self._storage.list_products()}
        rows = self._sink.read_range(product_catalog_range(self.sheet_name))

        suggestions: list[ProductSuggestion] = []
        seen: set[str] = set()
        for offset, row in enumerate(rows):
            if not row or not row[0].strip():
                continue
            name = row[0].strip()
            key = _name_key(name)
            if key in existing or key in seen:
                continue
            seen.add(key)
            suggestions.append(
                ProductSuggestion(
                    name=name,
                    selling_price=parse_french_number(row[1] if len(row) > 1 else None),
                    unit_cost=parse_french_number(row[2] if len(row) > 2 else None),
                    sheet_row=PRODUCT_FIRST_ROW + offset,
                )
            )
        return suggestions
