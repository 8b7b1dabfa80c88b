"""
Shared fixtures.

Every test runs against an in-memory SQLite ledger and an in-memory
spreadsheet; nothing touches the network.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import uuid4

import pytest
import sqlalchemy as sa
from sqlalchemy.pool import StaticPool

from budget_dashboard.audit import AuditLogger
from budget_dashboard.config import AppSettings, GoogleSheetsSettings
from budget_dashboard.models.ledger import ExpenseCreate, IncomeCreate
from budget_dashboard.services.sheets.interface import (
    CellValue,
    SheetSyncError,
    SpreadsheetSinkInterface,
)
from budget_dashboard.services.storage import SqlLedgerStorage
from budget_dashboard.services.storage.sql_ledger import expenses_table


class FakeSheetSink(SpreadsheetSinkInterface):
    """
    Spreadsheet kept in a dict.

    Set `fail_with` to an exception to make every call raise it.
    Ranges returned by read_range are preloaded through `rows`.
    """

    def __init__(self):
        self.cells: dict[str, CellValue] = {}
        self.rows: dict[str, list[list[str]]] = {}
        self.writes: list[tuple[str, CellValue]] = []
        self.batches: list[list[tuple[str, list[list[CellValue]]]]] = []
        self.fail_with: Optional[SheetSyncError] = None

    def write_cell(self, cell_range: str, value: CellValue) -> None:
        if self.fail_with:
            raise self.fail_with
        self.cells[cell_range] = value
        self.writes.append((cell_range, value))

    def read_range(self, cell_range: str) -> list[list[str]]:
        if self.fail_with:
            raise self.fail_with
        return self.rows.get(cell_range, [])

    def write_ranges(self, updates: list[tuple[str, list[list[CellValue]]]]) -> None:
        if self.fail_with:
            raise self.fail_with
        self.batches.append(updates)
        for cell_range, values in updates:
            self.cells[cell_range] = values


@pytest.fixture
def engine():
    engine = sa.create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    yield engine
    engine.dispose()


@pytest.fixture
def storage(engine) -> SqlLedgerStorage:
    store = SqlLedgerStorage(engine)
    store.create_schema()
    return store


@pytest.fixture
def sink() -> FakeSheetSink:
    return FakeSheetSink()


@pytest.fixture
def sheets_settings() -> GoogleSheetsSettings:
    return GoogleSheetsSettings(
        _env_file=None,
        sheet_id="test-sheet",
        credentials_path=None,
        service_account_email=None,
        private_key=None,
    )


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(
        _env_file=None,
        budget_start_year=2026,
        budget_start_month=1,
        recent_transactions_limit=10,
        excluded_income_sources="T-WAKE",
        product_sales_year=2026,
    )


@pytest.fixture
def audit_logger() -> AuditLogger:
    return AuditLogger("budget_dashboard.tests")


def expense(
    day: date,
    amount: str,
    category: str = "Maison",
    subcategory: Optional[str] = "Eau",
    description: Optional[str] = None,
) -> ExpenseCreate:
    return ExpenseCreate(
        date=day,
        amount=Decimal(amount),
        category=category,
        subcategory=subcategory,
        description=description,
    )


def income(day: date, amount: str, source: str = "Salaire") -> IncomeCreate:
    return IncomeCreate(date=day, amount=Decimal(amount), source=source)


def insert_raw_expense(engine, day: date, amount: str, **fields) -> None:
    """Write an expense row directly, skipping the form limits of ExpenseCreate."""
    values = {
        "id": uuid4(),
        "created_at": datetime.now(timezone.utc),
        "date": day,
        "amount": Decimal(amount),
        "category": "Maison",
        "subcategory": "Eau",
        "description": None,
    }
    values.update(fields)
    with engine.begin() as conn:
        conn.execute(expenses_table.insert().values(**values))
