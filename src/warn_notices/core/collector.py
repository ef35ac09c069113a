"""Combining and searching notice collections.

All functions build new collections and leave their inputs untouched, so one
source can be merged into several results.
"""

from __future__ import annotations

from typing import Iterable, List

from .errors import MergingNoticesError
from .models import NoticeCollection, NoticeRecord


def reduce_notices(current: NoticeCollection, other: NoticeCollection) -> NoticeCollection:
    """Concatenate two collections into a new one, ``current`` first."""
    return NoticeCollection(notices=list(current.notices) + list(other.notices))


merge = reduce_notices


def reduce_all(collections: Iterable[NoticeCollection]) -> NoticeCollection:
    """Left fold of ``reduce_notices`` over one or more collections.

    Raises:
        MergingNoticesError: If ``collections`` is empty.
    """
    iterator = iter(collections)
    try:
        combined = next(iterator)
    except StopIteration:
        raise MergingNoticesError("No sheets to merge") from None
    # Copy so the result never aliases the first input
    combined = reduce_notices(combined, NoticeCollection())
    for other in iterator:
        combined = reduce_notices(combined, other)
    return combined


def to_notices(notice: NoticeRecord) -> NoticeCollection:
    """Wrap a single notice in a collection."""
    collection = NoticeCollection()
    collection.add(notice)
    return collection


def to_notices_from_list(notices: List[NoticeRecord]) -> NoticeCollection:
    return NoticeCollection.from_records(notices)


def search_notices_for_company(notices: NoticeCollection, company_name_key: str) -> NoticeCollection:
    """Return notices whose firm name contains ``company_name_key``, ignoring case."""
    key = company_name_key.lower()
    matches = [
        n for n in notices if n.firm_name is not None and key in n.firm_name.lower()
    ]
    return to_notices_from_list(matches)


__all__ = [
    "merge",
    "reduce_notices",
    "reduce_all",
    "to_notices",
    "to_notices_from_list",
    "search_notices_for_company",
]
