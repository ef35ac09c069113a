"""Notice data models.

This module defines the records produced by both notice sources:
- NoticeRecord: One WARN filing, every field independently optional
- NoticeCollection: Ordered notices from one or more sources
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, replace
from typing import Dict, Iterable, Iterator, List, Optional

import pandas as pd

from .enums import NoticeField


@dataclass(frozen=True)
class NoticeRecord:
    """A single WARN notice.

    Attributes:
        firm_name: Name of the company filing the notice.
        firm_locations: Free text, may list several locations.
        affected_employees: Kept as text, upstream values are not always numeric.
        effective_date: Date the layoff takes effect.
        date_received: Date the state received the notice.

    A field set to None is absent. An empty string is a present (blank) value.

    Examples:
        >>> notice = NoticeRecord(firm_name="Acme Corp")
        >>> notice.has_firm_name(), notice.has_effective_date()
        (True, False)
        >>> notice.to_dict()
        {'firmName': 'Acme Corp'}
    """

    firm_name: Optional[str] = None
    firm_locations: Optional[str] = None
    affected_employees: Optional[str] = None
    effective_date: Optional[str] = None
    date_received: Optional[str] = None

    def has_firm_name(self) -> bool:
        return self.firm_name is not None

    def has_firm_locations(self) -> bool:
        return self.firm_locations is not None

    def has_affected_employees(self) -> bool:
        return self.affected_employees is not None

    def has_effective_date(self) -> bool:
        return self.effective_date is not None

    def has_date_received(self) -> bool:
        return self.date_received is not None

    def get(self, notice_field: NoticeField) -> Optional[str]:
        return getattr(self, notice_field.attr)

    def with_field(self, notice_field: NoticeField, value: Optional[str]) -> "NoticeRecord":
        """Return a copy of this record with one field replaced."""
        return replace(self, **{notice_field.attr: value})

    def is_empty(self) -> bool:
        """True when all five fields are absent."""
        return all(getattr(self, f.name) is None for f in fields(self))

    def to_dict(self) -> Dict[str, str]:
        """JSON mapping with camelCase keys; absent fields are omitted."""
        out: Dict[str, str] = {}
        for notice_field in NoticeField:
            value = self.get(notice_field)
            if value is not None:
                out[notice_field.value] = value
        return out


@dataclass
class NoticeCollection:
    """Ordered collection of notices.

    Records with every field absent are never stored. Order is preserved
    through merges but carries no meaning.
    """

    notices: List[NoticeRecord] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.notices = [n for n in self.notices if not n.is_empty()]

    @classmethod
    def from_records(cls, records: Iterable[NoticeRecord]) -> "NoticeCollection":
        return cls(notices=list(records))

    def add(self, notice: NoticeRecord) -> bool:
        """Append a notice unless it is empty. Returns True if it was stored."""
        if notice.is_empty():
            return False
        self.notices.append(notice)
        return True

    def __len__(self) -> int:
        return len(self.notices)

    def __iter__(self) -> Iterator[NoticeRecord]:
        return iter(self.notices)

    def to_dict(self) -> Dict[str, List[Dict[str, str]]]:
        return {"notices": [n.to_dict() for n in self.notices]}

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=indent)

    def to_dataframe(self) -> pd.DataFrame:
        """One row per notice, columns in NoticeField order, absent fields as None."""
        columns = [f.attr for f in NoticeField]
        rows = [{col: getattr(n, col) for col in columns} for n in self.notices]
        return pd.DataFrame(rows, columns=columns)
