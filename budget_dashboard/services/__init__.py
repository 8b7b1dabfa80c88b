"""Services package."""

from budget_dashboard.services.sheets import (
    GoogleSheetsClient,
    GoogleSheetsSink,
    SheetNotConfiguredError,
    SheetSyncError,
    SpreadsheetSinkInterface,
    create_sheet_sink,
)
from budget_dashboard.services.storage import (
    ConnectionError,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    SqlLedgerStorage,
    StorageError,
    StorageNotConfiguredError,
)

__all__ = [
    # Spreadsheet mirror
    "GoogleSheetsClient",
    "GoogleSheetsSink",
    "SheetNotConfiguredError",
    "SheetSyncError",
    "SpreadsheetSinkInterface",
    "create_sheet_sink",
    # Ledger storage
    "ConnectionError",
    "DuplicateError",
    "LedgerStorageInterface",
    "NotFoundError",
    "SqlLedgerStorage",
    "StorageError",
    "StorageNotConfiguredError",
]
