"""Navigation of the WARN weekly report page.

The page has one section heading announcing this week's notices. The element
after it wraps the notice list in two empty layers::

    <section>
      <h2>Companies that submitted WARN notices this past week</h2>
      <div>                      <- notices container
        <div>                    <- wrapper
          <p>Company: ...</p>    <- first notice sibling
          <p>Company: ...</p>
          <p><a href="/doc/...">WARN Report for the week ending 12/27/24</a></p>
        </div>
      </div>
    </section>

Notices are the siblings containing the "Company:" marker; the year-to-date
spreadsheet link is the sibling whose first child carries the report text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

import httpx

from warn_notices.core.config import DEFAULT_TIMEOUT_SEC, PageMarkers
from warn_notices.core.errors import ParsingError
from warn_notices.core.models import NoticeCollection
from warn_notices.core.utils import resolve_url
from .elements import Element, SiblingCursor, element_text, parse_document
from .paragraph import NoticeParagraphParser


logger = logging.getLogger(__name__)

# Use browser-like headers to avoid server blocking
REQUEST_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml,*/*",
    "Accept-Language": "en-US,en;q=0.9",
}


@dataclass(frozen=True)
class YearToDateLink:
    """Resolved link to the year-to-date spreadsheet."""

    url: str
    year: str  # two-digit year suffix, e.g. "24"
    text: str


def fetch_page(
    url: str,
    *,
    client: Optional[httpx.Client] = None,
    timeout_sec: float = DEFAULT_TIMEOUT_SEC,
) -> str:
    """GET a page and return its text. HTTP errors propagate as httpx exceptions."""
    owns_client = client is None
    if client is None:
        client = httpx.Client(timeout=timeout_sec, follow_redirects=True, headers=REQUEST_HEADERS)
    try:
        logger.info("Fetching %s", url)
        response = client.get(url)
        response.raise_for_status()
        return response.text
    finally:
        if owns_client:
            client.close()


def extract_report_year(link_text: str) -> str:
    """Two-digit year from the end of the report link text.

    "WARN Report for the week ending 12/27/24" -> "24"

    Raises:
        ParsingError: If the text does not end in two digits.
    """
    suffix = link_text.strip()[-2:]
    if len(suffix) != 2 or not suffix.isdigit():
        raise ParsingError(f"Cannot read a two-digit year from report text {link_text!r}")
    return suffix


class PageNavigator:
    """Locates this week's notices and the year-to-date report link on the page."""

    def __init__(
        self,
        document: Element,
        *,
        markers: Optional[PageMarkers] = None,
        base_url: str = "",
    ) -> None:
        self.document = document
        self.markers = markers or PageMarkers()
        self.base_url = base_url

    @classmethod
    def from_html(
        cls, markup: str, *, markers: Optional[PageMarkers] = None, base_url: str = ""
    ) -> "PageNavigator":
        return cls(parse_document(markup), markers=markers, base_url=base_url)

    def find_heading(self) -> Element:
        """The single heading whose text contains the configured heading text.

        Raises:
            ParsingError: If no heading or more than one heading matches.
        """
        heading_text = self.markers.heading_text
        headings = [
            h for h in self.document.select(self.markers.heading_selector)
            if heading_text in element_text(h)
        ]
        if not headings:
            raise ParsingError(f"No heading matches {heading_text!r}")
        if len(headings) > 1:
            raise ParsingError(f"Found {len(headings)} headings that match {heading_text!r}")
        return headings[0]

    def notices_container(self) -> Element:
        container = self.find_heading().next_sibling_element()
        if container is None:
            raise ParsingError("No sibling element to warning notice heading")
        return container

    def first_notice_sibling(self) -> Element:
        """First element of the notice list, two wrapper levels below the container."""
        wrapper = self.notices_container().first_element_child()
        if wrapper is None:
            raise ParsingError("Notices container has no child element")
        first = wrapper.first_element_child()
        if first is None:
            raise ParsingError("Inner notices wrapper has no child element")
        return first

    def notice_paragraphs(self) -> List[Element]:
        prefix = self.markers.notice_prefix
        return [
            sibling for sibling in SiblingCursor(self.first_notice_sibling())
            if prefix in element_text(sibling)
        ]

    def current_week_notices(self) -> NoticeCollection:
        """Parse every notice paragraph listed for the current week."""
        notices = NoticeCollection()
        for paragraph in self.notice_paragraphs():
            first_line = paragraph.first_element_child()
            if first_line is None:
                logger.debug("Skipping notice paragraph without child elements")
                continue
            notice = NoticeParagraphParser(SiblingCursor(first_line)).parse_notice()
            notices.add(notice)
        logger.info("Found %d notices for the current week", len(notices))
        return notices

    def year_to_date_element(self) -> Element:
        """First child of the sibling that carries the year-to-date report text.

        Raises:
            ParsingError: If no sibling carries the text.
        """
        report_text = self.markers.year_to_date_text
        for sibling in SiblingCursor(self.first_notice_sibling()):
            child = sibling.first_element_child()
            if child is not None and report_text in element_text(child):
                return child
        raise ParsingError(
            f"No elements contain the prefix {report_text!r} expected for yearly report"
        )

    def year_to_date_link(self) -> YearToDateLink:
        element = self.year_to_date_element()
        href = element.attr("href")
        if not href:
            raise ParsingError("Year-to-date report element has no href")
        text = element_text(element).strip()
        link = YearToDateLink(
            url=resolve_url(self.base_url, href),
            year=extract_report_year(text),
            text=text,
        )
        logger.info("Found year-to-date report link %s (year %s)", link.url, link.year)
        return link


__all__ = [
    "PageNavigator",
    "YearToDateLink",
    "extract_report_year",
    "fetch_page",
]
