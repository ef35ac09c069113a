"""Year-to-date WARN report (Excel) parser.

Every sheet has the same layout: a title and headings in rows 0-2, then one
notice per row with columns

    A: date received   B: company   C: locations   D: effective date   E: employees

Dates are entered by hand, so a date cell may hold text, or a serial day
count in the 1900 date system that the reader did not recognize as a date.
"""

from __future__ import annotations

import logging
import zipfile
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException
from tqdm import tqdm

from warn_notices.core.collector import reduce_all
from warn_notices.core.config import DEFAULT_START_ROW
from warn_notices.core.errors import SpreadsheetParsingError
from warn_notices.core.models import NoticeCollection, NoticeRecord


logger = logging.getLogger(__name__)

DATE_RECEIVED_COL = 0
FIRM_NAME_COL = 1
FIRM_LOCATIONS_COL = 2
EFFECTIVE_DATE_COL = 3
AFFECTED_EMPLOYEES_COL = 4
COLUMN_COUNT = 5

EXCEL_EPOCH = date(1900, 1, 1)

# the headings end at row 2, data starts in row 3
START_ROW_NUMBER = DEFAULT_START_ROW


def from_days_since_1900(raw_days_since_1900: int) -> date:
    """Convert a 1900-system serial day count to a calendar date.

    Two days are subtracted: serial 1 is 1900-01-01 itself, and the 1900
    system counts a 29 February 1900 that never existed.
    """
    return EXCEL_EPOCH + timedelta(days=raw_days_since_1900 - 2)


def _format_number(value: Union[int, float]) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _is_error(cell: Any) -> bool:
    return getattr(cell, "data_type", None) == "e"


def cell_to_text(cell: Any) -> Optional[str]:
    """Text value of a cell, or None for empty, boolean and error cells.

    Numbers become their decimal string ("12", "12.5"); strings pass through.
    """
    value = cell.value
    if value is None:
        return None
    if _is_error(cell):
        logger.debug("Error from cell %s: %s", getattr(cell, "coordinate", "?"), value)
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _format_number(value)
    if isinstance(value, str):
        return value
    return None


def convert_date(cell: Any) -> Optional[str]:
    """Date value of a cell as text.

    Strings pass through, serial day counts are decoded to YYYY-MM-DD, and
    cells the reader already decoded as dates are rendered the same way.
    Anything else, including serials outside the calendar range, is absent.
    """
    value = cell.value
    if value is None or _is_error(cell) or isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        try:
            return from_days_since_1900(int(value)).isoformat()
        except OverflowError:
            logger.debug(
                "Serial %s in cell %s is not a date", value, getattr(cell, "coordinate", "?")
            )
            return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return None


class YearToDateParser:
    """Reads every worksheet of a year-to-date workbook into notices."""

    def __init__(
        self,
        path_to_file: Path,
        *,
        start_row: int = DEFAULT_START_ROW,
        verbose: bool = False,
    ) -> None:
        self.path_to_file = Path(path_to_file)
        self.start_row = start_row
        self.verbose = verbose
        logger.info("Opening %s", self.path_to_file)
        try:
            self.workbook = openpyxl.load_workbook(
                self.path_to_file, read_only=True, data_only=True
            )
        except (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError, OSError) as e:
            raise SpreadsheetParsingError(
                f"Error opening workbook {self.path_to_file}: {e}"
            ) from e

    def close(self) -> None:
        self.workbook.close()

    def __enter__(self) -> "YearToDateParser":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def parse_for_notices(self) -> NoticeCollection:
        """Notices from all sheets, in sheet order.

        Raises:
            MergingNoticesError: If the workbook has no sheets.
            SpreadsheetParsingError: If a sheet is shorter than the header block.
        """
        sheet_names: List[str] = list(self.workbook.sheetnames)
        per_sheet = [self.parse_worksheet(name) for name in sheet_names]
        notices = reduce_all(per_sheet)
        logger.info(
            "Parsed %d notices from %d sheets of %s",
            len(notices),
            len(sheet_names),
            self.path_to_file.name,
        )
        return notices

    def parse_worksheet(self, sheet_name: str) -> NoticeCollection:
        """Parses an individual worksheet for its notices.

        Rows are streamed from the read-only sheet, so formatting that inflates
        the sheet dimensions never materializes cells.
        """
        ws = self.workbook[sheet_name]
        # Read-only sheets report None when the file has no dimension record
        declared_rows = ws.max_row
        total = max(declared_rows - self.start_row, 0) if declared_rows else None

        worksheet_notices = NoticeCollection()
        num_rows = 0
        dropped = 0
        with tqdm(
            total=total,
            desc=f"{'Processing ' + sheet_name:<31}",
            unit="rows",
            disable=not self.verbose,
        ) as pbar:
            for row_idx, row in enumerate(ws.iter_rows(min_row=1, max_col=COLUMN_COUNT)):
                num_rows = row_idx + 1
                if row_idx < self.start_row:
                    continue
                notice = self._row_to_notice(row)
                if not worksheet_notices.add(notice):
                    dropped += 1
                pbar.update(1)

        if num_rows < self.start_row:
            raise SpreadsheetParsingError(
                f"Sheet {sheet_name!r} has {num_rows} rows, fewer than the "
                f"{self.start_row} header rows"
            )
        if dropped:
            logger.debug("Sheet %r: dropped %d empty rows", sheet_name, dropped)
        return worksheet_notices

    @staticmethod
    def _row_to_notice(row: Sequence[Any]) -> NoticeRecord:
        return NoticeRecord(
            firm_name=cell_to_text(row[FIRM_NAME_COL]),
            firm_locations=cell_to_text(row[FIRM_LOCATIONS_COL]),
            affected_employees=cell_to_text(row[AFFECTED_EMPLOYEES_COL]),
            effective_date=convert_date(row[EFFECTIVE_DATE_COL]),
            date_received=convert_date(row[DATE_RECEIVED_COL]),
        )


def flatten_year_to_date_excel(
    excel_file_path: Union[str, Path],
    *,
    start_row: int = DEFAULT_START_ROW,
    verbose: bool = False,
) -> NoticeCollection:
    """Parse a year-to-date workbook and return all of its notices."""
    with YearToDateParser(Path(excel_file_path), start_row=start_row, verbose=verbose) as parser:
        return parser.parse_for_notices()
