"""WARN Notice Tools: scraper for Massachusetts WARN layoff notices.

Collects this week's notices from the weekly report page and the
year-to-date spreadsheet linked from it, and merges both into one
collection. The `warn-notices` CLI prints the result as JSON.
"""

__all__ = [
    "__version__",
]

__version__ = "0.1.0"
