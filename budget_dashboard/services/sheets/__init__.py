"""
Spreadsheet Sink Package

The Google Sheets mirror of the budget: an abstract sink, its gspread
implementation and the static cell layout of the budget workbook.
"""

from budget_dashboard.services.sheets.interface import (
    CellValue,
    SheetAuthError,
    SheetConnectionError,
    SheetNotConfiguredError,
    SheetReadError,
    SheetSyncError,
    SheetWriteError,
    SpreadsheetSinkInterface,
)
from budget_dashboard.services.sheets.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsSink,
    create_sheet_sink,
)

__all__ = [
    "CellValue",
    "SpreadsheetSinkInterface",
    "SheetSyncError",
    "SheetAuthError",
    "SheetConnectionError",
    "SheetReadError",
    "SheetWriteError",
    "SheetNotConfiguredError",
    "GoogleSheetsClient",
    "GoogleSheetsSink",
    "create_sheet_sink",
]
