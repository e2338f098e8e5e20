"""
Google Sheets integration module.
Reads and writes lead and student records stored in the hosted spreadsheet.
"""
import asyncio
from typing import Dict, List, Optional

import gspread
from google.oauth2.service_account import Credentials
from loguru import logger

from config import (
    GOOGLE_SHEET_ID,
    LEADS_SHEET_NAME,
    STUDENTS_SHEET_NAME,
    SERVICE_ACCOUNT_PATH,
    LEAD_COLUMNS,
    STUDENT_COLUMNS,
    MAX_RETRIES,
    RETRY_DELAY,
    validate_store_config,
)
from utils.time_utils import now_utc, format_datetime


def column_letter(col_idx: int) -> str:
    """Convert a 0-based column index to its sheet letter (0 -> A, 26 -> AA)."""
    letters = ""
    col_idx += 1
    while col_idx:
        col_idx, remainder = divmod(col_idx - 1, 26)
        letters = chr(65 + remainder) + letters
    return letters


def rows_to_records(values: List[List[str]], columns: Dict[str, int]) -> List[Dict]:
    """
    Map raw sheet rows (header row first) to dicts keyed by column name.
    Blank rows are skipped. Rows without an ID are kept; each record keeps
    its sheet row number.
    """
    if len(values) <= 1:
        return []

    records = []
    for row_idx, row in enumerate(values[1:], start=2):  # Start from row 2 (after header)
        if not row or not any(cell.strip() for cell in row if cell):
            continue

        record = {}
        for col_name, col_idx in columns.items():
            value = row[col_idx] if col_idx < len(row) else ""
            record[col_name] = value.strip() if value else ""

        record["_row_number"] = row_idx  # Store row number for updates
        records.append(record)

    return records


class SheetsRecordStore:
    """Client for the lead and student worksheets."""

    def __init__(self):
        self.sheet = None
        self.worksheets = {}
        self._initialized = False

    async def initialize(self):
        """Initialize Google Sheets connection."""
        if self._initialized:
            return

        try:
            # Run synchronous gspread operations in executor
            loop = asyncio.get_event_loop()
            await loop.run_in_executor(None, self._sync_initialize)
            self._initialized = True
            logger.info("Google Sheets client initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize Google Sheets: {e}")
            raise

    def _sync_initialize(self):
        """Synchronous initialization of Google Sheets."""
        validate_store_config()
        scope = [
            "https://spreadsheets.google.com/feeds",
            "https://www.googleapis.com/auth/drive",
        ]
        creds = Credentials.from_service_account_file(
            str(SERVICE_ACCOUNT_PATH), scopes=scope
        )
        client = gspread.authorize(creds)
        self.sheet = client.open_by_key(GOOGLE_SHEET_ID)
        self.worksheets = {
            "leads": self.sheet.worksheet(LEADS_SHEET_NAME),
            "students": self.sheet.worksheet(STUDENTS_SHEET_NAME),
        }

    async def _retry_operation(self, operation, *args, **kwargs):
        """Retry a Google Sheets operation with exponential backoff."""
        last_error = None
        for attempt in range(MAX_RETRIES):
            try:
                loop = asyncio.get_event_loop()
                result = await loop.run_in_executor(None, lambda: operation(*args, **kwargs))
                return result
            except Exception as e:
                last_error = e
                if attempt < MAX_RETRIES - 1:
                    wait_time = RETRY_DELAY * (2 ** attempt)
                    logger.warning(
                        f"Google Sheets operation failed (attempt {attempt + 1}/{MAX_RETRIES}): {e}. "
                        f"Retrying in {wait_time}s..."
                    )
                    await asyncio.sleep(wait_time)
                else:
                    logger.error(f"Google Sheets operation failed after {MAX_RETRIES} attempts: {e}")

        raise last_error

    async def _list_records(self, kind: str, columns: Dict[str, int]) -> List[Dict]:
        """Fetch every record of a worksheet. Failures are logged and yield []."""
        try:
            await self.initialize()
            values = await self._retry_operation(self.worksheets[kind].get_all_values)
            records = rows_to_records(values, columns)
            logger.debug(f"Fetched {len(records)} {kind} from Google Sheets")
            return records
        except Exception as e:
            logger.error(f"Error fetching {kind}: {e}")
            return []

    async def _update_record(
        self, kind: str, columns: Dict[str, int], record_id: str, updates: Dict[str, str]
    ) -> bool:
        """
        Update a record in the sheet.
        updates: Dictionary with column names as keys and new values as values.
        """
        record_id = str(record_id).strip()
        if not record_id:
            logger.warning(f"Refusing to update {kind} record without an ID")
            return False

        records = await self._list_records(kind, columns)
        record = next(
            (r for r in records if r.get("ID", "").strip() == record_id), None
        )
        if not record:
            logger.warning(f"Record {record_id} not found in {kind} for update")
            return False

        row_number = record["_row_number"]
        updates = dict(updates)
        updates["Last_Update"] = format_datetime(now_utc())

        batch_updates = []
        for col_name, value in updates.items():
            if col_name not in columns:
                logger.warning(f"Unknown column: {col_name}")
                continue
            batch_updates.append({
                "range": f"{column_letter(columns[col_name])}{row_number}",
                "values": [[str(value) if value is not None else ""]],
            })

        try:
            await self._retry_operation(self.worksheets[kind].batch_update, batch_updates)
            logger.info(f"Updated {kind} record {record_id}: {updates}")
            return True
        except Exception as e:
            logger.error(f"Error updating {kind} record {record_id}: {e}")
            return False

    async def list_leads(self) -> List[Dict]:
        """All lead records; ordering is whatever the sheet holds."""
        return await self._list_records("leads", LEAD_COLUMNS)

    async def update_lead(self, lead_id: str, updates: Dict[str, str]) -> bool:
        return await self._update_record("leads", LEAD_COLUMNS, lead_id, updates)

    async def list_students(self) -> List[Dict]:
        return await self._list_records("students", STUDENT_COLUMNS)

    async def update_student(self, student_id: str, updates: Dict[str, str]) -> bool:
        return await self._update_record("students", STUDENT_COLUMNS, student_id, updates)


# Global instance
records_store = SheetsRecordStore()
