"""Search query validation and text helpers for rendering."""

from __future__ import annotations

from rich.markup import escape as escape_markup

SEARCH_REQUIRED_MESSAGE = "Movie/TV Show Name Is Required"


class EmptyQueryError(ValueError):
    """Raised when a search is submitted with blank text."""


def normalize_query(text: str | None) -> str:
    """Return the trimmed search text.

    Raises:
        EmptyQueryError: If nothing but whitespace was entered.
    """
    query = (text or "").strip()
    if not query:
        raise EmptyQueryError(SEARCH_REQUIRED_MESSAGE)
    return query


def truncate_text(text: str, max_len: int, suffix: str = "...") -> str:
    """Truncate text to max_len characters, adding suffix if truncated.

    Args:
        text: The text to truncate.
        max_len: Maximum length before truncation (not including suffix).
        suffix: String to append when truncated.

    Returns:
        Original text if within limit, otherwise truncated with suffix.
    """
    if len(text) <= max_len:
        return text
    return text[:max_len] + suffix


def escape_rich_text(text: str) -> str:
    """Escape text for safe Rich markup rendering."""
    return escape_markup(text) if text else ""


__all__ = [
    "SEARCH_REQUIRED_MESSAGE",
    "EmptyQueryError",
    "escape_rich_text",
    "normalize_query",
    "truncate_text",
]
