"""
SQL Ledger Storage Implementation

DESIGN DECISION: The ledger lives in Supabase's Postgres database and is
reached through SQLAlchemy Core rather than the Supabase REST client:
1. The same code runs against an in-memory SQLite database in tests
2. Range filters, ordering and joins are plain SQL
3. INSERT/DELETE ... RETURNING gives back the stored row in one round trip

TRADEOFFS:
- No transactions spanning several writes (each call is its own transaction)
- Schema creation is best-effort (Supabase tables usually exist already)

The implementation follows the abstract interface, so the reconciler and
dashboard never see SQL.
"""

from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Iterator, Optional
from uuid import UUID, uuid4

import sqlalchemy as sa
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.pool import QueuePool

from budget_dashboard.config.settings import DatabaseSettings
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
from budget_dashboard.services.storage.interface import (
    ConnectionError,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
    StorageNotConfiguredError,
)


metadata = sa.MetaData()

expenses_table = sa.Table(
    "expenses",
    metadata,
    sa.Column("id", sa.Uuid, primary_key=True),
    sa.Column("date", sa.Date, nullable=False, index=True),
    sa.Column("amount", sa.Numeric(12, 2), nullable=False),
    sa.Column("category", sa.String(100), nullable=False, index=True),
    sa.Column("subcategory", sa.String(100)),
    sa.Column("description", sa.Text),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
)

income_table = sa.Table(
    "income",
    metadata,
    sa.Column("id", sa.Uuid, primary_key=True),
    sa.Column("date", sa.Date, nullable=False, index=True),
    sa.Column("amount", sa.Numeric(12, 2), nullable=False),
    sa.Column("source", sa.String(200), nullable=False),
    sa.Column("description", sa.Text),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
)

products_table = sa.Table(
    "t_wake_products",
    metadata,
    sa.Column("id", sa.Uuid, primary_key=True),
    sa.Column("name", sa.String(200), nullable=False, unique=True),
    sa.Column("selling_price", sa.Numeric(12, 2), nullable=False),
    sa.Column("unit_cost", sa.Numeric(12, 2), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
)

product_sales_table = sa.Table(
    "t_wake_transactions",
    metadata,
    sa.Column("id", sa.Uuid, primary_key=True),
    sa.Column(
        "product_id",
        sa.Uuid,
        sa.ForeignKey("t_wake_products.id", ondelete="CASCADE"),
        nullable=False,
    ),
    sa.Column("date", sa.Date, nullable=False, index=True),
    sa.Column("quantity", sa.Integer, nullable=False),
    sa.Column("description", sa.Text),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
)


def create_ledger_engine(
    db_url: str,
    pool_size: int = 5,
    max_overflow: int = 5,
) -> Engine:
    """
    Create a pooled SQLAlchemy engine for the Supabase database.

    Args:
        db_url: Fully qualified database URL (driver and credentials included)
        pool_size: Connections kept open
        max_overflow: Extra connections allowed under load

    Returns:
        Engine with health checks enabled, so connections dropped by
        Supabase's pooler are replaced transparently.
    """
    return sa.create_engine(
        db_url,
        poolclass=QueuePool,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _newest_first(table: sa.Table) -> tuple:
    return (table.c.date.desc(), table.c.created_at.desc())


def _sales_with_product() -> sa.Select:
    return sa.select(
        product_sales_table,
        products_table.c.name.label("product_name"),
        products_table.c.selling_price.label("product_selling_price"),
        products_table.c.unit_cost.label("product_unit_cost"),
        products_table.c.created_at.label("product_created_at"),
    ).select_from(
        product_sales_table.outerjoin(
            products_table,
            product_sales_table.c.product_id == products_table.c.id,
        )
    )


def _sale_from_row(row: sa.Row) -> ProductSaleRecord:
    data = row._mapping
    product = None
    if data["product_name"] is not None:
        product = Product(
            id=data["product_id"],
            name=data["product_name"],
            selling_price=data["product_selling_price"],
            unit_cost=data["product_unit_cost"],
            created_at=data["product_created_at"],
        )
    return ProductSaleRecord(
        id=data["id"],
        product_id=data["product_id"],
        date=data["date"],
        quantity=data["quantity"],
        description=data["description"],
        created_at=data["created_at"],
        product=product,
    )


class SqlLedgerStorage(LedgerStorageInterface):
    """
    SQLAlchemy implementation of the ledger store.

    One short transaction per call; driver errors are wrapped into the
    storage exception hierarchy.
    """

    def __init__(self, engine: Engine):
        self._engine = engine

    @classmethod
    def from_settings(cls, settings: DatabaseSettings) -> "SqlLedgerStorage":
        """
        Build the store from configuration.

        Raises:
            StorageNotConfiguredError: If no database URL is set
        """
        if not settings.is_configured:
            raise StorageNotConfiguredError()
        engine = create_ledger_engine(
            settings.db_url,
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
        )
        return cls(engine)

    def create_schema(self) -> None:
        """Create the ledger tables if they don't exist yet."""
        try:
            metadata.create_all(self._engine)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to create ledger schema: {e}") from e

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[Connection]:
        try:
            with self._engine.begin() as conn:
                yield conn
        except IntegrityError as e:
            raise DuplicateError(f"Failed to {operation}: {e.orig}") from e
        except OperationalError as e:
            raise ConnectionError(f"Failed to {operation}: {e.orig}") from e
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to {operation}: {e}") from e

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    async def insert_expense(self, expense: ExpenseCreate) -> ExpenseRecord:
        values = {"id": uuid4(), "created_at": _utcnow(), **expense.model_dump()}
        with self._transaction("insert expense") as conn:
            row = conn.execute(
                expenses_table.insert().values(**values).returning(*expenses_table.c)
            ).one()
        return ExpenseRecord.model_validate(dict(row._mapping))

    async def get_expense(self, expense_id: UUID) -> Optional[ExpenseRecord]:
        with self._transaction("get expense") as conn:
            row = conn.execute(
                sa.select(expenses_table).where(expenses_table.c.id == expense_id)
            ).first()
        return ExpenseRecord.model_validate(dict(row._mapping)) if row else None

    async def delete_expense(self, expense_id: UUID) -> Optional[ExpenseRecord]:
        with self._transaction("delete expense") as conn:
            row = conn.execute(
                expenses_table.delete()
                .where(expenses_table.c.id == expense_id)
                .returning(*expenses_table.c)
            ).first()
        return ExpenseRecord.model_validate(dict(row._mapping)) if row else None

    async def list_expenses(
        self,
        category: Optional[str] = None,
        subcategory: Optional[str] = None,
        date_from: Optional[date] = None,
        date_before: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> list[ExpenseRecord]:
        c = expenses_table.c
        stmt = sa.select(expenses_table).order_by(*_newest_first(expenses_table))

        if category is not None:
            stmt = stmt.where(c.category == category)
        if subcategory == "":
            stmt = stmt.where(sa.or_(c.subcategory.is_(None), c.subcategory == ""))
        elif subcategory is not None:
            stmt = stmt.where(c.subcategory == subcategory)
        if date_from is not None:
            stmt = stmt.where(c.date >= date_from)
        if date_before is not None:
            stmt = stmt.where(c.date < date_before)
        if limit is not None:
            stmt = stmt.limit(limit)

        with self._transaction("list expenses") as conn:
            rows = conn.execute(stmt).all()
        return [ExpenseRecord.model_validate(dict(row._mapping)) for row in rows]

    # -------------------------------------------------------------------------
    # Income
    # -------------------------------------------------------------------------

    async def insert_income(self, income: IncomeCreate) -> IncomeRecord:
        values = {"id": uuid4(), "created_at": _utcnow(), **income.model_dump()}
        with self._transaction("insert income") as conn:
            row = conn.execute(
                income_table.insert().values(**values).returning(*income_table.c)
            ).one()
        return IncomeRecord.model_validate(dict(row._mapping))

    async def delete_income(self, income_id: UUID) -> Optional[IncomeRecord]:
        with self._transaction("delete income") as conn:
            row = conn.execute(
                income_table.delete()
                .where(income_table.c.id == income_id)
                .returning(*income_table.c)
            ).first()
        return IncomeRecord.model_validate(dict(row._mapping)) if row else None

    async def list_income(
        self,
        source: Optional[str] = None,
        date_from: Optional[date] = None,
        date_before: Optional[date] = None,
        exclude_sources: Optional[list[str]] = None,
        limit: Optional[int] = None,
    ) -> list[IncomeRecord]:
        c = income_table.c
        stmt = sa.select(income_table).order_by(*_newest_first(income_table))

        if source is not None:
            stmt = stmt.where(c.source == source)
        if exclude_sources:
            stmt = stmt.where(c.source.not_in(exclude_sources))
        if date_from is not None:
            stmt = stmt.where(c.date >= date_from)
        if date_before is not None:
            stmt = stmt.where(c.date < date_before)
        if limit is not None:
            stmt = stmt.limit(limit)

        with self._transaction("list income") as conn:
            rows = conn.execute(stmt).all()
        return [IncomeRecord.model_validate(dict(row._mapping)) for row in rows]

    # -------------------------------------------------------------------------
    # Products
    # -------------------------------------------------------------------------

    async def insert_product(self, product: ProductCreate) -> Product:
        values = {"id": uuid4(), "created_at": _utcnow(), **product.model_dump()}
        with self._transaction("insert product") as conn:
            row = conn.execute(
                products_table.insert().values(**values).returning(*products_table.c)
            ).one()
        return Product.model_validate(dict(row._mapping))

    async def get_product(self, product_id: UUID) -> Optional[Product]:
        with self._transaction("get product") as conn:
            row = conn.execute(
                sa.select(products_table).where(products_table.c.id == product_id)
            ).first()
        return Product.model_validate(dict(row._mapping)) if row else None

    async def find_product_by_name(self, name: str) -> Optional[Product]:
        with self._transaction("find product") as conn:
            row = conn.execute(
                sa.select(products_table).where(
                    sa.func.lower(products_table.c.name) == name.strip().lower()
                )
            ).first()
        return Product.model_validate(dict(row._mapping)) if row else None

    async def list_products(self) -> list[Product]:
        with self._transaction("list products") as conn:
            rows = conn.execute(
                sa.select(products_table).order_by(products_table.c.name)
            ).all()
        return [Product.model_validate(dict(row._mapping)) for row in rows]

    # -------------------------------------------------------------------------
    # Product sales
    # -------------------------------------------------------------------------

    async def insert_product_sale(self, sale: ProductSaleCreate) -> ProductSaleRecord:
        values = {"id": uuid4(), "created_at": _utcnow(), **sale.model_dump()}
        with self._transaction("insert product sale") as conn:
            exists = conn.execute(
                sa.select(products_table.c.id).where(products_table.c.id == sale.product_id)
            ).first()
            if exists is None:
                raise NotFoundError(f"Product not found: {sale.product_id}")
            conn.execute(product_sales_table.insert().values(**values))
            row = conn.execute(
                _sales_with_product().where(product_sales_table.c.id == values["id"])
            ).one()
        return _sale_from_row(row)

    async def delete_product_sale(self, sale_id: UUID) -> Optional[ProductSaleRecord]:
        with self._transaction("delete product sale") as conn:
            row = conn.execute(
                _sales_with_product().where(product_sales_table.c.id == sale_id)
            ).first()
            if row is None:
                return None
            conn.execute(
                product_sales_table.delete().where(product_sales_table.c.id == sale_id)
            )
        return _sale_from_row(row)

    async def list_product_sales(
        self,
        date_from: Optional[date] = None,
        date_before: Optional[date] = None,
        product_id: Optional[UUID] = None,
        limit: Optional[int] = None,
    ) -> list[ProductSaleRecord]:
        c = product_sales_table.c
        stmt = _sales_with_product().order_by(*_newest_first(product_sales_table))

        if product_id is not None:
            stmt = stmt.where(c.product_id == product_id)
        if date_from is not None:
            stmt = stmt.where(c.date >= date_from)
        if date_before is not None:
            stmt = stmt.where(c.date < date_before)
        if limit is not None:
            stmt = stmt.limit(limit)

        with self._transaction("list product sales") as conn:
            rows = conn.execute(stmt).all()
        return [_sale_from_row(row) for row in rows]
