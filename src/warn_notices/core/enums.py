"""Core enumerations used across the package."""

from __future__ import annotations

from enum import Enum


class NoticeField(str, Enum):
    """Fields of a WARN notice.

    Values are the JSON keys used when a notice is serialized.
    """

    FIRM_NAME = "firmName"
    FIRM_LOCATIONS = "firmLocations"
    AFFECTED_EMPLOYEES = "affectedEmployees"
    EFFECTIVE_DATE = "effectiveDate"
    DATE_RECEIVED = "dateReceived"

    @property
    def attr(self) -> str:
        """Attribute name on NoticeRecord."""
        return self.name.lower()


__all__ = ["NoticeField"]
