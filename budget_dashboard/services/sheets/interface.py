"""
Abstract Spreadsheet Sink Interface

The spreadsheet is a mirror, addressed by A1 ranges such as
"Budget!C28" or "'Cakes/Biscuits'!E5:P5". The sink only needs to read
and overwrite ranges; it never appends or deletes.

Values are written the way a user would type them (USER_ENTERED), so
"=1500+500" becomes a formula and 42.5 a number.
"""

from abc import ABC, abstractmethod
from typing import Union

CellValue = Union[str, int, float]


class SpreadsheetSinkInterface(ABC):
    """Anything that can hold the budget mirror."""

    @abstractmethod
    def write_cell(self, cell_range: str, value: CellValue) -> None:
        """
        Overwrite a single cell.

        Raises:
            SheetSyncError: If the write fails
        """
        pass

    @abstractmethod
    def read_range(self, cell_range: str) -> list[list[str]]:
        """
        Read a range as rows of display strings.

        Trailing empty cells and rows may be missing, as in the Sheets API.

        Raises:
            SheetSyncError: If the read fails
        """
        pass

    @abstractmethod
    def write_ranges(self, updates: list[tuple[str, list[list[CellValue]]]]) -> None:
        """
        Overwrite several ranges in one request.

        Args:
            updates: (range, rows) pairs
        """
        pass


class SheetSyncError(Exception):
    """Base exception for spreadsheet operations."""
    pass


class SheetAuthError(SheetSyncError):
    """Service account credentials were rejected or unusable."""
    pass


class SheetConnectionError(SheetSyncError):
    """The spreadsheet could not be opened."""
    pass


class SheetReadError(SheetSyncError):
    """A read request was rejected by the Sheets API."""
    pass


class SheetWriteError(SheetSyncError):
    """A write request was rejected by the Sheets API."""
    pass


class SheetNotConfiguredError(SheetSyncError):
    """No spreadsheet credentials configured."""

    def __init__(self, message: str = "Google Sheets not configured"):
        super().__init__(message)
