"""
Dashboard Models

Read-only shapes produced by the dashboard query and consumed by the
API and the Streamlit UI. They serialize with camelCase keys
(totalExpenses, monthBalance, ...) to match what the browser charts expect.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from budget_dashboard.models.ledger import Money, RecentTransaction


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CategoryTotal(_CamelModel):
    """Total spent in one category."""

    name: str
    value: Money


class MonthPoint(_CamelModel):
    """One month of the yearly time series."""

    name: str = Field(..., description="Short month label")
    month: int = Field(..., ge=1, le=12)
    expenses: Money = Decimal("0")
    income: Money = Decimal("0")


class DashboardSummary(_CamelModel):
    """
    Everything the dashboard shows for one month.

    carryover is the balance brought forward from all previous months
    of the budget; closing_balance = carryover + month_balance.
    """

    year: int
    month: int = Field(..., ge=1, le=12)
    month_start: dt.date
    month_end: dt.date = Field(..., description="First day of the next month (exclusive)")

    total_expenses: Money
    total_income: Money
    month_balance: Money
    carryover: Money
    closing_balance: Money

    expense_count: int = Field(ge=0)
    income_count: int = Field(ge=0)

    category_breakdown: list[CategoryTotal] = Field(default_factory=list)
    time_series: list[MonthPoint] = Field(default_factory=list)
    recent_transactions: list[RecentTransaction] = Field(default_factory=list)


class PeriodStats(_CamelModel):
    """Product sales over one period."""

    revenue: Money = Decimal("0")
    profit: Money = Decimal("0")
    count: int = 0

    def add(self, revenue: Decimal, profit: Decimal, quantity: int) -> None:
        self.revenue += revenue
        self.profit += profit
        self.count += quantity


class ProductStats(_CamelModel):
    """Product sales for today, this week, this month and this year."""

    reference_date: dt.date
    today: PeriodStats = Field(default_factory=PeriodStats)
    week: PeriodStats = Field(default_factory=PeriodStats)
    month: PeriodStats = Field(default_factory=PeriodStats)
    year: PeriodStats = Field(default_factory=PeriodStats)


class MonthlyProductSales(_CamelModel):
    """Quantity of one product sold in one month ("YYYY-MM-01")."""

    product_id: UUID
    month: str
    quantity: int


class ProductSuggestion(_CamelModel):
    """A product listed in the products worksheet but missing from the store."""

    name: str
    selling_price: Money = Decimal("0")
    unit_cost: Money = Decimal("0")
    sheet_row: Optional[int] = None
