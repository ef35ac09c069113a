"""Exceptions raised while scraping WARN notices."""


class ScraperError(Exception):
    """Base exception for all scraper errors."""
    pass


class ParsingError(ScraperError):
    """Raised when the page markup does not have the expected structure."""
    pass


class DownloadingError(ScraperError):
    """Raised when the year-to-date report cannot be retrieved or staged."""
    pass


class SpreadsheetParsingError(ScraperError):
    """Raised when the year-to-date workbook cannot be read."""
    pass


class MergingNoticesError(ScraperError):
    """Raised when a reduction over notice collections has nothing to reduce."""
    pass
