"""
Dashboard Aggregation Queries

DESIGN DECISION: Every figure on the dashboard is recomputed from the
ledger on each request. Nothing is cached and no running balance is
stored, so a deleted or back-dated row is reflected immediately.

All month filters are half-open: month_start <= date < next_month_start.
"""

from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

import structlog

from budget_dashboard.config import AppSettings
from budget_dashboard.models.dashboard import (
    CategoryTotal,
    DashboardSummary,
    MonthlyProductSales,
    MonthPoint,
    PeriodStats,
    ProductStats,
)
from budget_dashboard.models.ledger import (
    ExpenseRecord,
    IncomeRecord,
    ProductSaleRecord,
    RecentTransaction,
)
from budget_dashboard.services.storage.interface import LedgerStorageInterface
from budget_dashboard.utils.periods import MONTH_LABELS, month_bounds, week_start


logger = structlog.get_logger(__name__)

ZERO = Decimal("0")


def total_amount(rows: Iterable) -> Decimal:
    return sum((row.amount for row in rows), ZERO)


def category_breakdown(expenses: Iterable[ExpenseRecord]) -> list[CategoryTotal]:
    """
    Expenses grouped by category.

    Sorted by total descending; equal totals are ordered by name.
    """
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for expense in expenses:
        totals[expense.category] += expense.amount
    ordered = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    return [CategoryTotal(name=name, value=value) for name, value in ordered]


def merge_recent_transactions(
    expenses: Iterable[ExpenseRecord],
    income: Iterable[IncomeRecord],
    sales: Iterable[ProductSaleRecord],
    limit: int = 10,
) -> list[RecentTransaction]:
    """
    Merge the three ledgers into one newest-first list.

    Ordered by business date descending, then created_at descending,
    so two rows on the same day show the most recently entered first.
    """
    rows = [RecentTransaction.from_expense(e) for e in expenses]
    rows.extend(RecentTransaction.from_income(i) for i in income)
    rows.extend(RecentTransaction.from_sale(s) for s in sales)
    rows.sort(key=lambda r: (r.date, r.created_at), reverse=True)
    return rows[:limit]


class DashboardQuery:
    """
    Read-only queries behind the dashboard and the T-WAKE page.

    Income whose source is in the configured exclusion list (T-WAKE by
    default) is left out of income totals: product revenue used to be
    entered twice, once as income and once as a sale.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        settings: Optional[AppSettings] = None,
    ):
        self._storage = storage
        self._settings = settings or AppSettings()

    @property
    def _excluded_sources(self) -> list[str]:
        return self._settings.excluded_income_sources_list

    @property
    def budget_start(self) -> date:
        return date(self._settings.budget_start_year, self._settings.budget_start_month, 1)

    # -------------------------------------------------------------------------
    # Monthly summary
    # -------------------------------------------------------------------------

    async def monthly_summary(self, year: int, month_index: int) -> DashboardSummary:
        """
        Everything the dashboard shows for one month.

        Args:
            year: Calendar year
            month_index: 0 = January ... 11 = December

        Raises:
            StorageError: If any ledger query fails
        """
        month_start, next_month = month_bounds(year, month_index)
        expenses, income = await self.month_rows(year, month_index)

        total_expenses = total_amount(expenses)
        total_income = total_amount(income)
        month_balance = total_income - total_expenses
        carryover = await self.carryover(year, month_index)

        summary = DashboardSummary(
            year=year,
            month=month_index + 1,
            month_start=month_start,
            month_end=next_month,
            total_expenses=total_expenses,
            total_income=total_income,
            month_balance=month_balance,
            carryover=carryover,
            closing_balance=carryover + month_balance,
            expense_count=len(expenses),
            income_count=len(income),
            category_breakdown=category_breakdown(expenses),
            time_series=await self.yearly_series(year),
            recent_transactions=await self.recent_transactions(),
        )

        logger.debug(
            "dashboard_summary",
            year=year,
            month=month_index + 1,
            expenses=len(expenses),
            income=len(income),
        )
        return summary

    async def month_rows(
        self,
        year: int,
        month_index: int,
    ) -> tuple[list[ExpenseRecord], list[IncomeRecord]]:
        """Expenses and counted income dated within one month."""
        month_start, next_month = month_bounds(year, month_index)
        expenses = await self._storage.list_expenses(
            date_from=month_start,
            date_before=next_month,
        )
        income = await self._storage.list_income(
            date_from=month_start,
            date_before=next_month,
            exclude_sources=self._excluded_sources,
        )
        return expenses, income

    async def month_balance(self, year: int, month_index: int) -> Decimal:
        expenses, income = await self.month_rows(year, month_index)
        return total_amount(income) - total_amount(expenses)

    async def carryover(self, year: int, month_index: int) -> Decimal:
        """
        Balance brought forward into a month.

        carryover(N) = carryover(N-1) + month_balance(N-1), and 0 for the
        budget start month or any month before it. Unrolled, that is
        income minus expenses over [budget_start, month_start), which is
        what is queried here.
        """
        month_start, _ = month_bounds(year, month_index)
        if month_start <= self.budget_start:
            return ZERO

        expenses = await self._storage.list_expenses(
            date_from=self.budget_start,
            date_before=month_start,
        )
        income = await self._storage.list_income(
            date_from=self.budget_start,
            date_before=month_start,
            exclude_sources=self._excluded_sources,
        )
        return total_amount(income) - total_amount(expenses)

    async def yearly_series(self, year: int) -> list[MonthPoint]:
        """Twelve points (Jan..Dec) of expenses and income for a year."""
        year_start, year_end = date(year, 1, 1), date(year + 1, 1, 1)
        expenses = await self._storage.list_expenses(
            date_from=year_start,
            date_before=year_end,
        )
        income = await self._storage.list_income(
            date_from=year_start,
            date_before=year_end,
            exclude_sources=self._excluded_sources,
        )

        points = [
            MonthPoint(name=label, month=index + 1)
            for index, label in enumerate(MONTH_LABELS)
        ]
        for expense in expenses:
            points[expense.date.month - 1].expenses += expense.amount
        for row in income:
            points[row.date.month - 1].income += row.amount
        return points

    async def recent_transactions(self, limit: Optional[int] = None) -> list[RecentTransaction]:
        """Latest rows across all three ledgers, whatever their month."""
        limit = limit or self._settings.recent_transactions_limit
        expenses = await self._storage.list_expenses(limit=limit)
        income = await self._storage.list_income(
            exclude_sources=self._excluded_sources,
            limit=limit,
        )
        sales = await self._storage.list_product_sales(limit=limit)
        return merge_recent_transactions(expenses, income, sales, limit=limit)

    # -------------------------------------------------------------------------
    # T-WAKE
    # -------------------------------------------------------------------------

    async def product_stats(self, reference_date: Optional[date] = None) -> ProductStats:
        """
        Revenue, profit and units sold for today, this week (from Monday),
        this month and this year, up to and including reference_date.
        """
        today = reference_date or date.today()
        monday = week_start(today)
        month_start = today.replace(day=1)
        year_start = today.replace(month=1, day=1)

        sales = await self._storage.list_product_sales(
            date_from=min(monday, year_start),
            date_before=today + timedelta(days=1),
        )

        stats = ProductStats(reference_date=today)
        for sale in sales:
            if sale.product is None:
                continue
            figures = (sale.revenue, sale.margin, sale.quantity)
            if sale.date == today:
                stats.today.add(*figures)
            if sale.date >= monday:
                stats.week.add(*figures)
            if sale.date >= month_start:
                stats.month.add(*figures)
            if sale.date >= year_start:
                stats.year.add(*figures)
        return stats

    async def product_monthly_sales(self, year: Optional[int] = None) -> list[MonthlyProductSales]:
        """Units sold per product per month, months keyed "YYYY-MM-01"."""
        if year is None:
            sales = await self._storage.list_product_sales()
        else:
            sales = await self._storage.list_product_sales(
                date_from=date(year, 1, 1),
                date_before=date(year + 1, 1, 1),
            )

        quantities: dict[tuple[str, str], int] = defaultdict(int)
        product_ids = {}
        for sale in sales:
            month = sale.date.replace(day=1).isoformat()
            key = (str(sale.product_id), month)
            product_ids[key] = sale.product_id
            quantities[key] += sale.quantity

        return [
            MonthlyProductSales(product_id=product_ids[key], month=key[1], quantity=qty)
            for key, qty in sorted(quantities.items(), key=lambda item: (item[0][1], item[0][0]))
        ]
