"""Parsing of a single notice paragraph into a NoticeRecord.

A notice on the weekly page is one paragraph whose child elements each carry
one "Label: value" line, e.g.::

    <p>
      <span>Company: Acme Corp</span><br>
      <span>Company location(s): Boston, Worcester</span><br>
      <span>Affected employees: 120</span><br>
      <span>Effective Date: 03/01/2024</span>
    </p>
"""

from __future__ import annotations

import logging
from typing import Iterable, Tuple

from warn_notices.core.enums import NoticeField
from warn_notices.core.errors import ParsingError
from warn_notices.core.models import NoticeRecord
from .elements import Element, element_text


logger = logging.getLogger(__name__)

INDIVIDUAL_NOTICE_PREFIX = "Company:"
COMPANY_LOCATION_LINE_PREFIX = "Company location(s):"
AFFECTED_EMPLOYEES_LINE_PREFIX = "Affected employees:"
EFFECTIVE_DATE_LINE_PREFIX = "Effective Date:"

# Checked in this order; the first prefix found in a line wins
LINE_PREFIXES: Tuple[Tuple[str, NoticeField], ...] = (
    (INDIVIDUAL_NOTICE_PREFIX, NoticeField.FIRM_NAME),
    (COMPANY_LOCATION_LINE_PREFIX, NoticeField.FIRM_LOCATIONS),
    (AFFECTED_EMPLOYEES_LINE_PREFIX, NoticeField.AFFECTED_EMPLOYEES),
    (EFFECTIVE_DATE_LINE_PREFIX, NoticeField.EFFECTIVE_DATE),
)


def split_on_prefix(raw_line: str, line_prefix: str) -> str:
    """Return the trimmed text after the first occurrence of ``line_prefix``.

    Raises:
        ParsingError: If the line does not contain the prefix.
    """
    _, sep, rest = raw_line.strip().partition(line_prefix)
    if not sep:
        raise ParsingError(f"Line {raw_line!r} does not contain {line_prefix!r}")
    return rest.strip()


class NoticeParagraphParser:
    """Turns the child elements of one notice paragraph into a NoticeRecord."""

    def __init__(self, notice_paragraph_siblings: Iterable[Element]) -> None:
        self.notice_paragraph_siblings = notice_paragraph_siblings

    def parse_notice(self) -> NoticeRecord:
        """Classify each line by prefix; lines without a known prefix are ignored."""
        notice = NoticeRecord()
        for line_element in self.notice_paragraph_siblings:
            line = element_text(line_element)
            for prefix, notice_field in LINE_PREFIXES:
                if prefix in line:
                    notice = notice.with_field(notice_field, split_on_prefix(line, prefix))
                    break
            else:
                if line.strip():
                    logger.debug("Ignoring unrecognized notice line: %r", line)
        return notice


__all__ = [
    "INDIVIDUAL_NOTICE_PREFIX",
    "COMPANY_LOCATION_LINE_PREFIX",
    "AFFECTED_EMPLOYEES_LINE_PREFIX",
    "EFFECTIVE_DATE_LINE_PREFIX",
    "LINE_PREFIXES",
    "NoticeParagraphParser",
    "split_on_prefix",
]
