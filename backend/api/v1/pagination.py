"""Shared pagination limits and query parsing."""

from core import settings

MAX_PAGE_SIZE = 100


def parse_page_size(raw_limit: str | None) -> int:
    """Parse ``limit`` leniently: non-numeric falls back to the default, values are clamped."""
    max_page_size = min(settings.feed_max_page_size, MAX_PAGE_SIZE)
    default = min(max(settings.feed_default_page_size, 1), max_page_size)
    if raw_limit is None or not raw_limit.strip():
        return default
    try:
        parsed = int(raw_limit.strip())
    except ValueError:
        return default
    return min(max(parsed, 1), max_page_size)
