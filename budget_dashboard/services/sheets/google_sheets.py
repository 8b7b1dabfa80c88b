"""
Google Sheets Sink Implementation

DESIGN DECISION: The spreadsheet is a mirror, not a store:
1. The family reads budget totals directly in the sheet they already use
2. The database stays the source of truth
3. A broken sheet never blocks a ledger write

TRADEOFFS:
- Cell addresses come from a static layout table (see layout.py)
- Authorisation is retried; individual writes are not (the next
  reconciliation rewrites the same cell anyway)

The implementation follows the abstract sink interface, so the
reconcilers can be tested against an in-memory fake.
"""

from typing import Optional

import gspread
import structlog
from google.auth.exceptions import GoogleAuthError
from google.oauth2.service_account import Credentials
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from budget_dashboard.config import GoogleSheetsSettings, get_settings
from budget_dashboard.services.sheets.interface import (
    CellValue,
    SheetAuthError,
    SheetConnectionError,
    SheetNotConfiguredError,
    SheetReadError,
    SheetWriteError,
    SpreadsheetSinkInterface,
)


logger = structlog.get_logger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
TOKEN_URI = "https://oauth2.googleapis.com/token"

USER_ENTERED = "USER_ENTERED"


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for opening the
    spreadsheet.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @property
    def settings(self) -> GoogleSheetsSettings:
        return self._settings

    def _credentials(self) -> Credentials:
        if self._settings.has_inline_credentials:
            info = {
                "type": "service_account",
                "client_email": self._settings.service_account_email,
                "private_key": self._settings.private_key,
                "token_uri": TOKEN_URI,
            }
            return Credentials.from_service_account_info(info, scopes=SCOPES)
        return Credentials.from_service_account_file(
            self._settings.credentials_path,
            scopes=SCOPES,
        )

    @retry(
        retry=retry_if_exception_type(SheetConnectionError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication, either the
        inline email + private key or a credentials JSON file.

        Raises:
            SheetNotConfiguredError: If no sheet or credentials are set
            SheetAuthError: If the credentials are unusable (not retried)
            SheetConnectionError: If the client cannot be built
        """
        if not self._settings.is_configured:
            raise SheetNotConfiguredError()

        if self._client is None:
            try:
                self._client = gspread.authorize(self._credentials())
            except FileNotFoundError:
                raise SheetAuthError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except (GoogleAuthError, ValueError) as e:
                raise SheetAuthError(f"Invalid service account credentials: {e}")
            except OSError as e:
                raise SheetConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(self._settings.sheet_id)
            except gspread.SpreadsheetNotFound:
                raise SheetConnectionError(
                    f"Spreadsheet not found: {self._settings.sheet_id}"
                )
            except gspread.exceptions.APIError as e:
                raise SheetConnectionError(f"Failed to open spreadsheet: {e}")
            except GoogleAuthError as e:
                raise SheetAuthError(f"Google rejected the service account: {e}")
        return self._spreadsheet


class GoogleSheetsSink(SpreadsheetSinkInterface):
    """
    Google Sheets implementation of the spreadsheet sink.

    Every request goes through the spreadsheet-level values API so a
    single call can address any worksheet by A1 range.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def write_cell(self, cell_range: str, value: CellValue) -> None:
        spreadsheet = self._client.get_spreadsheet()
        try:
            spreadsheet.values_update(
                cell_range,
                params={"valueInputOption": USER_ENTERED},
                body={"values": [[value]]},
            )
        except gspread.exceptions.APIError as e:
            raise SheetWriteError(f"Failed to write {cell_range}: {e}")
        except GoogleAuthError as e:
            raise SheetAuthError(f"Google rejected the service account: {e}")
        except OSError as e:
            raise SheetConnectionError(f"Failed to reach Google Sheets: {e}")

        logger.debug("sheet_cell_written", cell=cell_range, value=value)

    def read_range(self, cell_range: str) -> list[list[str]]:
        spreadsheet = self._client.get_spreadsheet()
        try:
            response = spreadsheet.values_get(cell_range)
        except gspread.exceptions.APIError as e:
            raise SheetReadError(f"Failed to read {cell_range}: {e}")
        except GoogleAuthError as e:
            raise SheetAuthError(f"Google rejected the service account: {e}")
        except OSError as e:
            raise SheetConnectionError(f"Failed to reach Google Sheets: {e}")

        return [[str(cell) for cell in row] for row in response.get("values", [])]

    def write_ranges(self, updates: list[tuple[str, list[list[CellValue]]]]) -> None:
        if not updates:
            return

        spreadsheet = self._client.get_spreadsheet()
        body = {
            "valueInputOption": USER_ENTERED,
            "data": [{"range": rng, "values": rows} for rng, rows in updates],
        }
        try:
            spreadsheet.values_batch_update(body=body)
        except gspread.exceptions.APIError as e:
            raise SheetWriteError(f"Failed to batch update {len(updates)} ranges: {e}")
        except GoogleAuthError as e:
            raise SheetAuthError(f"Google rejected the service account: {e}")
        except OSError as e:
            raise SheetConnectionError(f"Failed to reach Google Sheets: {e}")

        logger.debug("sheet_ranges_written", ranges=len(updates))


def create_sheet_sink(
    settings: Optional[GoogleSheetsSettings] = None,
) -> Optional[GoogleSheetsSink]:
    """
    Build the sink from configuration.

    Returns None when the mirror is not configured, so callers can
    run database-only.
    """
    settings = settings or get_settings().google_sheets
    if not settings.is_configured:
        logger.info("sheet_sink_disabled", reason="Google Sheets not configured")
        return None
    return GoogleSheetsSink(GoogleSheetsClient(settings))
