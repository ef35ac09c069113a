"""Shared pytest fixtures and builders for synthetic WARN pages and workbooks."""

from __future__ import annotations

import io
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import openpyxl
import pytest

from warn_notices.core.config import PageMarkers, ScraperConfig, StagingSettings

HEADING = "Companies that submitted WARN notices this past week"
PAGE_PATH = "/info-details/warn-weekly-report"
BASE_URL = "https://warn.example.gov"
REPORT_PATH = "/doc/warn-report-for-the-week-ending-12-27-2024/download"
REPORT_FILENAME = "WARN Report 2024.xlsx"

ACME_PARAGRAPH = (
    "<p>"
    "<span>Company: Acme Corp</span><br/>\n"
    "<span>Company location(s): Boston, Worcester</span><br/>\n"
    "<span>Affected employees: 120</span><br/>\n"
    "<span>Effective Date: 03/01/2024</span>"
    "</p>"
)
BETA_PARAGRAPH = (
    "<p>"
    "<span>Company: Beta Logistics LLC</span>\n"
    "<!-- updated -->\n"
    "<span>Company location(s): Springfield</span>\n"
    "<span>Affected employees: 45</span>\n"
    "<span>Effective Date: 04/15/2024</span>\n"
    "<span>Type: Closure</span>"
    "</p>"
)
GAMMA_PARAGRAPH = "<p><span>Company: Gamma Health</span></p>"

REPORT_LINK = (
    f'<p><a href="{REPORT_PATH}">WARN Report for the week ending 12/27/24</a></p>'
)

HEADER_ROWS: List[list] = [
    ["WARN Report"],
    ["Year to date"],
    ["Date Received", "Company", "Location(s)", "Effective Date", "Employees"],
]


def build_warn_page(
    paragraphs: Sequence[str] = (ACME_PARAGRAPH, BETA_PARAGRAPH, GAMMA_PARAGRAPH),
    report_link: str = REPORT_LINK,
    *,
    heading: str = HEADING,
    heading_count: int = 1,
) -> str:
    """Weekly page markup: heading, container, wrapper, then the notice siblings."""
    inner = "\n".join(list(paragraphs) + [report_link])
    section = (
        "<section>\n"
        f"<h2>{heading}</h2>\n"
        '<div class="ma__rich-text">\n<div>\n'
        f"{inner}\n"
        "</div>\n</div>\n"
        "</section>"
    )
    sections = "\n".join([section] * heading_count)
    return (
        "<html><head><title>WARN</title></head><body>\n"
        "<section><h2>Other announcements</h2><div><p>Nothing</p></div></section>\n"
        f"{sections}\n"
        "</body></html>"
    )


def build_workbook(sheets: Dict[str, List[list]]) -> openpyxl.Workbook:
    """Workbook with one sheet per entry; rows are written from row 1."""
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(title=name)
        for r, row in enumerate(rows, start=1):
            for c, value in enumerate(row, start=1):
                if value is not None:
                    ws.cell(row=r, column=c, value=value)
    return wb


def write_workbook(path: Path, sheets: Dict[str, List[list]]) -> Path:
    build_workbook(sheets).save(path)
    return path


def workbook_bytes(sheets: Dict[str, List[list]]) -> bytes:
    buf = io.BytesIO()
    build_workbook(sheets).save(buf)
    return buf.getvalue()


# Two sheets: 4 kept rows in the first, 2 in the second
YTD_SHEETS: Dict[str, List[list]] = {
    "Q1": HEADER_ROWS
    + [
        [45292, "Acme Corp", "Boston", 45366, 120],
        ["01/05/2024", "Beta Logistics LLC", "Springfield, Lowell", "TBD", "35"],
        [None, None, None, None, None],
        [True, None, None, None, None],
        [None, "#N/A", None, None, None],
        [None, None, None, None, 7],
        [datetime(2024, 2, 1), "Delta Foods", "Chicopee", 45383.75, 42.0],
    ],
    "Q2": HEADER_ROWS
    + [
        [45413, "Epsilon Tech", "Cambridge", None, 12.5],
        [None, "Zeta Retail", None, None, None],
    ],
}
YTD_NOTICE_COUNT = 6


@pytest.fixture
def warn_page_html() -> str:
    return build_warn_page()


@pytest.fixture
def ytd_workbook(tmp_path: Path) -> Path:
    return write_workbook(tmp_path / "ytd.xlsx", YTD_SHEETS)


@pytest.fixture
def staging_settings(tmp_path: Path) -> StagingSettings:
    return StagingSettings(
        staging_dir=tmp_path / "staging" / "downloads",
        target_dir=tmp_path / "staging",
        target_filename="warn_report_{year}.xlsx",
        extension="xlsx",
        retriever="httpx",
    )


@pytest.fixture
def scraper_config(staging_settings: StagingSettings) -> ScraperConfig:
    return ScraperConfig(
        base_url=BASE_URL,
        page_path=PAGE_PATH,
        timeout_sec=5.0,
        markers=PageMarkers(),
        staging=staging_settings,
    )


def make_cell(value, data_type: Optional[str] = None):
    """Real openpyxl cell holding ``value`` (data type inferred unless given)."""
    ws = openpyxl.Workbook().active
    cell = ws.cell(row=1, column=1, value=value)
    if data_type is not None:
        cell.data_type = data_type
    return cell
