"""Excel parsers for WARN notice reports.

Public API:
 - flatten_year_to_date_excel
 - YearToDateParser
 - cell_to_text, convert_date, from_days_since_1900
"""

from .year_to_date import (
    START_ROW_NUMBER,
    YearToDateParser,
    cell_to_text,
    convert_date,
    flatten_year_to_date_excel,
    from_days_since_1900,
)

__all__ = [
    "START_ROW_NUMBER",
    "YearToDateParser",
    "cell_to_text",
    "convert_date",
    "flatten_year_to_date_excel",
    "from_days_since_1900",
]
