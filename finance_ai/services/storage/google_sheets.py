"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a backend because:
1. Non-technical users can see (and copy) their data directly in Sheets
2. No database setup required
3. Built-in history on Google's side

Slots are rows in a three-column worksheet: key, value, updated_at.
The value cell holds the JSON text of the aggregate.

TRADEOFFS:
- A cell holds at most 50,000 characters, which is the effective quota
- Every read fetches the whole sheet (there are only two rows)
"""

from datetime import datetime, timezone
from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from finance_ai.config import GoogleSheetsSettings, get_settings
from finance_ai.services.storage.interface import (
    BackendConnectionError,
    KeyValueBackend,
    StorageError,
    StorageFullError,
)


STORAGE_COLUMNS = ["key", "value", "updated_at"]

# Hard limit on characters per cell imposed by Google Sheets
MAX_CELL_CHARS = 50_000

_retry_api_errors = retry(
    retry=retry_if_exception_type(gspread.exceptions.APIError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise BackendConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise BackendConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise BackendConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_storage_sheet(self) -> gspread.Worksheet:
        """Get or create the key/value worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.storage_sheet_name)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=self._settings.storage_sheet_name,
                rows=10,
                cols=len(STORAGE_COLUMNS),
            )
            sheet.append_row(STORAGE_COLUMNS)
        return sheet


class GoogleSheetsBackend(KeyValueBackend):
    """
    Google Sheets implementation of slot storage.

    One row per slot. Row 1 is the header.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def _find_row(rows: list[list[str]], key: str) -> Optional[int]:
        """1-based sheet row index of ``key``, skipping the header."""
        for idx, row in enumerate(rows[1:], start=2):
            if row and row[0] == key:
                return idx
        return None

    @_retry_api_errors
    def _read(self, key: str) -> Optional[str]:
        rows = self._client.get_storage_sheet().get_all_values()
        idx = self._find_row(rows, key)
        if idx is None:
            return None
        row = rows[idx - 1]
        return row[1] if len(row) > 1 and row[1] else None

    @_retry_api_errors
    def _write(self, key: str, text: str) -> None:
        sheet = self._client.get_storage_sheet()
        timestamp = datetime.now(timezone.utc).isoformat()
        idx = self._find_row(sheet.get_all_values(), key)
        if idx is None:
            sheet.append_row([key, text, timestamp], value_input_option="RAW")
        else:
            sheet.update_cell(idx, 2, text)
            sheet.update_cell(idx, 3, timestamp)

    @_retry_api_errors
    def _remove(self, key: str) -> None:
        sheet = self._client.get_storage_sheet()
        idx = self._find_row(sheet.get_all_values(), key)
        if idx is not None:
            sheet.delete_rows(idx)

    def get(self, key: str) -> Optional[bytes]:
        try:
            text = self._read(key)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read slot {key}: {e}") from e
        return text.encode("utf-8") if text is not None else None

    def set(self, key: str, value: bytes) -> None:
        try:
            text = value.decode("utf-8")
        except UnicodeDecodeError as e:
            raise StorageError(f"Slot {key} only accepts UTF-8 text") from e

        if len(text) > MAX_CELL_CHARS:
            raise StorageFullError(
                f"Slot {key} needs {len(text)} characters, "
                f"a sheet cell holds {MAX_CELL_CHARS}"
            )

        try:
            self._write(key, text)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to write slot {key}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self._remove(key)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete slot {key}: {e}") from e
