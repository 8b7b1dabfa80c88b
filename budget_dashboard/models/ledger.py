"""
Ledger Data Models for Budget Dashboard

These models define the schemas for every row the ledger store holds:
expenses, income, and the T-WAKE product sub-ledger (products and sales).

DESIGN DECISION: Each entity has a *Create* model carrying only what a user
submits and validates, and a *Record* model for rows read back from the
store, with the id and created_at it assigns. Record models carry no input
limits, so rows written by other tools still load. Records are never
updated in place: they are created and deleted by id.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)


# Decimals go over the wire as JSON numbers, not strings
Money = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]


def _blank_to_none(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    return v or None


# =============================================================================
# ENUMS
# =============================================================================

class TransactionKind(str, Enum):
    """Which ledger table a dashboard transaction row came from."""
    EXPENSE = "expense"
    INCOME = "income"
    PRODUCT_SALE = "product_sale"


# =============================================================================
# EXPENSES
# =============================================================================

class ExpenseCreate(BaseModel):
    """
    An expense as submitted from the form or the API.

    category/subcategory follow the budget worksheet layout
    (e.g. "Maison" / "Eau") so the monthly total can be mirrored there.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    date: dt.date = Field(
        ...,
        description="Business date of the expense"
    )
    amount: Money = Field(
        ...,
        gt=0,
        max_digits=12,
        decimal_places=2,
        description="Amount spent (positive)"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Budget category"
    )
    subcategory: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Budget subcategory"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=500,
        description="Free-text note"
    )

    @field_validator("subcategory", "description")
    @classmethod
    def empty_as_none(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)

    @property
    def subcategory_key(self) -> str:
        """Subcategory as used in the cell mapping ('' when missing)."""
        return self.subcategory or ""


class ExpenseRecord(BaseModel):
    """
    An expense row as stored in the ledger.

    Rows are taken as the store holds them: the form limits of
    ExpenseCreate do not apply to rows imported or edited elsewhere.
    """

    id: UUID
    created_at: dt.datetime
    date: dt.date
    amount: Money
    category: str
    subcategory: Optional[str] = None
    description: Optional[str] = None

    @field_validator("subcategory", "description")
    @classmethod
    def empty_as_none(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)

    @property
    def subcategory_key(self) -> str:
        return self.subcategory or ""


# =============================================================================
# INCOME
# =============================================================================

class IncomeCreate(BaseModel):
    """Income as submitted from the form or the API."""
    model_config = ConfigDict(str_strip_whitespace=True)

    date: dt.date
    amount: Money = Field(
        ...,
        gt=0,
        max_digits=12,
        decimal_places=2,
    )
    source: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Where the money came from (salary, allowance, ...)"
    )
    description: Optional[str] = Field(default=None, max_length=500)

    @field_validator("description")
    @classmethod
    def empty_as_none(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)


class IncomeRecord(BaseModel):
    """An income row as stored in the ledger."""

    id: UUID
    created_at: dt.datetime
    date: dt.date
    amount: Money
    source: str
    description: Optional[str] = None


# =============================================================================
# T-WAKE PRODUCT SUB-LEDGER
# =============================================================================

class ProductCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=200)
    selling_price: Money = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    unit_cost: Money = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)


class Product(BaseModel):
    """A product sold through the T-WAKE side business."""

    id: UUID
    created_at: dt.datetime
    name: str
    selling_price: Money = Decimal("0")
    unit_cost: Money = Decimal("0")

    @property
    def unit_margin(self) -> Decimal:
        return self.selling_price - self.unit_cost


class ProductSaleCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    product_id: UUID
    date: dt.date
    quantity: int = Field(..., gt=0, description="Units sold")
    description: Optional[str] = Field(default=None, max_length=500)

    @field_validator("description")
    @classmethod
    def empty_as_none(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)


class ProductSaleRecord(BaseModel):
    """
    A sale row, with its product joined in when read back.

    Revenue and margin are derived, never stored:
        revenue = quantity * selling_price
        margin  = quantity * (selling_price - unit_cost)
    """

    id: UUID
    created_at: dt.datetime
    product_id: UUID
    date: dt.date
    quantity: int
    description: Optional[str] = None
    product: Optional[Product] = None

    @property
    def revenue(self) -> Decimal:
        if self.product is None:
            return Decimal("0")
        return self.quantity * self.product.selling_price

    @property
    def margin(self) -> Decimal:
        if self.product is None:
            return Decimal("0")
        return self.quantity * self.product.unit_margin


# =============================================================================
# DASHBOARD ROWS
# =============================================================================

class RecentTransaction(BaseModel):
    """
    One row of the "recent transactions" table.

    Expenses, income and product sales are merged into this shape;
    label is the category, the income source, or the product name.
    """

    kind: TransactionKind
    id: UUID
    date: dt.date
    created_at: dt.datetime
    amount: Money
    label: str
    description: Optional[str] = None

    @classmethod
    def from_expense(cls, expense: ExpenseRecord) -> "RecentTransaction":
        label = expense.category
        if expense.subcategory:
            label = f"{expense.category}/{expense.subcategory}"
        return cls(
            kind=TransactionKind.EXPENSE,
            id=expense.id,
            date=expense.date,
            created_at=expense.created_at,
            amount=expense.amount,
            label=label,
            description=expense.description,
        )

    @classmethod
    def from_income(cls, income: IncomeRecord) -> "RecentTransaction":
        return cls(
            kind=TransactionKind.INCOME,
            id=income.id,
            date=income.date,
            created_at=income.created_at,
            amount=income.amount,
            label=income.source,
            description=income.description,
        )

    @classmethod
    def from_sale(cls, sale: ProductSaleRecord) -> "RecentTransaction":
        return cls(
            kind=TransactionKind.PRODUCT_SALE,
            id=sale.id,
            date=sale.date,
            created_at=sale.created_at,
            amount=sale.revenue,
            label=sale.product.name if sale.product else "Unknown product",
            description=sale.description,
        )
