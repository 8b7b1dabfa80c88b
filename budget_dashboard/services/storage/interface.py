"""
Abstract Ledger Storage Interface

DESIGN DECISION: We define an abstract interface for ledger operations.
This allows us to:
1. Run against Supabase's Postgres in production
2. Use an in-memory SQLite database for testing
3. Keep the reconciler and dashboard query decoupled from SQL

The interface is intentionally simple - we're not building a full ORM.
Just the inserts, deletes and filtered reads the dashboard needs.

Date ranges are half-open everywhere: date_from <= date < date_before.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

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


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger storage operations.

    Any storage implementation must implement these methods.
    List methods return newest first: date descending, then
    created_at descending.
    """

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    @abstractmethod
    async def insert_expense(self, expense: ExpenseCreate) -> ExpenseRecord:
        """
        Insert an expense.

        Returns:
            The stored record with id and created_at assigned

        Raises:
            StorageError: If the insert fails
        """
        pass

    @abstractmethod
    async def get_expense(self, expense_id: UUID) -> Optional[ExpenseRecord]:
        """Retrieve an expense by ID, or None."""
        pass

    @abstractmethod
    async def delete_expense(self, expense_id: UUID) -> Optional[ExpenseRecord]:
        """
        Delete an expense by ID.

        Returns:
            The deleted record, or None if no such expense existed
        """
        pass

    @abstractmethod
    async def list_expenses(
        self,
        category: Optional[str] = None,
        subcategory: Optional[str] = None,
        date_from: Optional[date] = None,
        date_before: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> list[ExpenseRecord]:
        """
        List expenses with optional filters.

        Args:
            category: Exact category match
            subcategory: Exact subcategory match; "" matches rows without one
            date_from: Keep expenses on or after this date
            date_before: Keep expenses strictly before this date
            limit: Maximum number of results
        """
        pass

    # -------------------------------------------------------------------------
    # Income
    # -------------------------------------------------------------------------

    @abstractmethod
    async def insert_income(self, income: IncomeCreate) -> IncomeRecord:
        pass

    @abstractmethod
    async def delete_income(self, income_id: UUID) -> Optional[IncomeRecord]:
        """Delete an income row; returns it, or None if it did not exist."""
        pass

    @abstractmethod
    async def list_income(
        self,
        source: Optional[str] = None,
        date_from: Optional[date] = None,
        date_before: Optional[date] = None,
        exclude_sources: Optional[list[str]] = None,
        limit: Optional[int] = None,
    ) -> list[IncomeRecord]:
        """
        List income with optional filters.

        Args:
            source: Exact source match
            exclude_sources: Sources to leave out entirely
        """
        pass

    # -------------------------------------------------------------------------
    # Products
    # -------------------------------------------------------------------------

    @abstractmethod
    async def insert_product(self, product: ProductCreate) -> Product:
        """
        Insert a product.

        Raises:
            DuplicateError: If a product with this name exists
        """
        pass

    @abstractmethod
    async def get_product(self, product_id: UUID) -> Optional[Product]:
        pass

    @abstractmethod
    async def find_product_by_name(self, name: str) -> Optional[Product]:
        """Case-insensitive lookup by product name."""
        pass

    @abstractmethod
    async def list_products(self) -> list[Product]:
        """All products, by name."""
        pass

    # -------------------------------------------------------------------------
    # Product sales
    # -------------------------------------------------------------------------

    @abstractmethod
    async def insert_product_sale(self, sale: ProductSaleCreate) -> ProductSaleRecord:
        """
        Insert a sale; the returned record has its product joined in.

        Raises:
            NotFoundError: If the product does not exist
        """
        pass

    @abstractmethod
    async def delete_product_sale(self, sale_id: UUID) -> Optional[ProductSaleRecord]:
        pass

    @abstractmethod
    async def list_product_sales(
        self,
        date_from: Optional[date] = None,
        date_before: Optional[date] = None,
        product_id: Optional[UUID] = None,
        limit: Optional[int] = None,
    ) -> list[ProductSaleRecord]:
        """List sales, each with its product joined in."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


class StorageNotConfiguredError(StorageError):
    """No database URL configured."""

    def __init__(self, message: str = "Supabase not configured"):
        super().__init__(message)
