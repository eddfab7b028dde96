"""
Google Sheets State Storage

DESIGN DECISION: The state sheet holds one row per storage key:

    key | updated_at | payload

`payload` is the JSON-encoded state document. The owner can open the
spreadsheet to see when each user's state was last written, and the
sheet doubles as an off-device backup.

TRADEOFFS:
- A single cell caps out at 50,000 characters. Large sale logs will
  outgrow this; JsonFileStorage has no such limit.
- No transactions. Last write wins, which matches the debounced saver.
"""

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from shop_ledger.config import get_settings
from shop_ledger.persistence.interface import (
    ConnectionError,
    StateStorageInterface,
    StorageError,
)


STATE_COLUMNS = ["key", "updated_at", "payload"]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """Authenticate with the service account file."""
        if self._client is None:
            try:
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=["https://www.googleapis.com/auth/spreadsheets"],
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(self._settings.spreadsheet_id)
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_state_sheet(self) -> gspread.Worksheet:
        """Get or create the state worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.state_sheet_name)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=self._settings.state_sheet_name,
                rows=100,
                cols=len(STATE_COLUMNS),
            )
            sheet.append_row(STATE_COLUMNS)
        return sheet


class GoogleSheetsStateStorage(StateStorageInterface):
    """State documents stored as rows of the state worksheet."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def _find_row(rows: list[list[str]], key: str) -> Optional[int]:
        """1-based sheet row index for `key`, skipping the header."""
        for idx, row in enumerate(rows[1:], start=2):
            if row and row[0] == key:
                return idx
        return None

    def _read(self, key: str) -> Optional[dict[str, Any]]:
        try:
            rows = self._client.get_state_sheet().get_all_values()
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read state sheet: {e}")

        idx = self._find_row(rows, key)
        if idx is None:
            return None
        row = rows[idx - 1]
        payload = row[2] if len(row) > 2 else ""
        if not payload:
            return None
        try:
            document = json.loads(payload)
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt payload for {key!r}: {e}")
        if not isinstance(document, dict):
            raise StorageError(f"Stored value under {key!r} is not an object")
        return document

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _write(self, key: str, document: dict[str, Any]) -> bool:
        try:
            payload = json.dumps(document, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Document under {key!r} is not JSON-serializable: {e}")

        row = [key, datetime.now(timezone.utc).isoformat(), payload]
        try:
            sheet = self._client.get_state_sheet()
            idx = self._find_row(sheet.get_all_values(), key)
            if idx is None:
                sheet.append_row(row, value_input_option="RAW")
            else:
                sheet.update(
                    range_name=f"A{idx}:C{idx}",
                    values=[row],
                    value_input_option="RAW",
                )
            return True
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save state {key!r}: {e}")

    def _remove(self, key: str) -> bool:
        try:
            sheet = self._client.get_state_sheet()
            idx = self._find_row(sheet.get_all_values(), key)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete state {key!r}: {e}")

    async def load(self, key: str) -> Optional[dict[str, Any]]:
        return await asyncio.to_thread(self._read, key)

    async def save(self, key: str, document: dict[str, Any]) -> bool:
        return await asyncio.to_thread(self._write, key, document)

    async def delete(self, key: str) -> bool:
        return await asyncio.to_thread(self._remove, key)
