"""Core utility functions for WARN Notice Tools.

This module provides shared utilities used across the project.
"""

from __future__ import annotations

from urllib.parse import urlparse


def resolve_url(base_url: str, href: str) -> str:
    """Resolve a link found on the page against the configured base URL.

    Absolute links are returned unchanged. Site-relative links are joined to
    the base with exactly one slash between them, whatever slashes either side
    already carries.

    Args:
        base_url: Site root, e.g. "https://www.mass.gov" or "https://www.mass.gov/".
        href: Link as found in the markup.

    Returns:
        The absolute URL.

    Examples:
        >>> resolve_url("https://example.com/", "/a/b")
        'https://example.com/a/b'
        >>> resolve_url("https://example.com", "a/b")
        'https://example.com/a/b'
        >>> resolve_url("https://example.com", "https://cdn.example.com/f.xlsx")
        'https://cdn.example.com/f.xlsx'
    """
    href = href.strip()
    parsed = urlparse(href)
    if parsed.scheme and parsed.netloc:
        return href
    if href.startswith("//"):
        scheme = urlparse(base_url).scheme or "https"
        return f"{scheme}:{href}"
    return f"{base_url.rstrip('/')}/{href.lstrip('/')}"
