"""End-to-end collection of WARN notices.

Fetches the weekly report page once, parses this week's notices from it,
follows the year-to-date report link, stages and parses the spreadsheet, and
merges both collections.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from warn_notices.core.collector import merge
from warn_notices.core.config import ScraperConfig
from warn_notices.core.models import NoticeCollection
from warn_notices.ingestion.parsers import YearToDateParser
from warn_notices.scraping.page import PageNavigator, fetch_page
from warn_notices.sources.downloader import (
    HttpxRetriever,
    Retriever,
    get_retriever,
    stage_spreadsheet,
)


logger = logging.getLogger(__name__)


@dataclass
class CollectedNotices:
    current_week: NoticeCollection
    year_to_date: NoticeCollection
    combined: NoticeCollection


def load_navigator(config: ScraperConfig, *, client: Optional[httpx.Client] = None) -> PageNavigator:
    markup = fetch_page(config.page_url, client=client, timeout_sec=config.timeout_sec)
    return PageNavigator.from_html(markup, markers=config.markers, base_url=config.base_url)


def collect_current_week(
    config: ScraperConfig, *, client: Optional[httpx.Client] = None
) -> NoticeCollection:
    """Notices listed on the weekly page only; the spreadsheet is not downloaded."""
    return load_navigator(config, client=client).current_week_notices()


def _default_retriever(config: ScraperConfig, client: Optional[httpx.Client]) -> Retriever:
    if client is not None and config.staging.retriever.lower() == "httpx":
        return HttpxRetriever(client=client, timeout_sec=config.timeout_sec)
    return get_retriever(config.staging.retriever, timeout_sec=config.timeout_sec)


def collect_notices(
    config: ScraperConfig,
    *,
    client: Optional[httpx.Client] = None,
    retriever: Optional[Retriever] = None,
    verbose: bool = False,
) -> CollectedNotices:
    """Run the whole pipeline.

    Raises:
        ScraperError: Any parsing, downloading, spreadsheet or merging failure.
        httpx.HTTPError: If the weekly page cannot be fetched.
    """
    navigator = load_navigator(config, client=client)
    current_week = navigator.current_week_notices()
    link = navigator.year_to_date_link()

    retriever = retriever or _default_retriever(config, client)
    with stage_spreadsheet(link.url, link.year, config.staging, retriever) as staged:
        with YearToDateParser(staged.path, start_row=config.start_row, verbose=verbose) as parser:
            year_to_date = parser.parse_for_notices()

    combined = merge(current_week, year_to_date)
    logger.info(
        "Collected %d notices (%d this week, %d year to date)",
        len(combined),
        len(current_week),
        len(year_to_date),
    )
    return CollectedNotices(current_week=current_week, year_to_date=year_to_date, combined=combined)
