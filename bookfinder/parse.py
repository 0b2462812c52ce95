"""Parse and normalize Book Finder API results."""
from typing import Dict, Any, List
from urllib.parse import unquote

from bookfinder.models import Book

TRADE_PREFIX = "Trade "


def _values(field: Any) -> List[str]:
    """Flatten an associative (or list) field into its values, in order."""
    if not field:
        return []
    if isinstance(field, dict):
        field = field.values()
    elif isinstance(field, str):
        field = [field]
    return [str(value) for value in field if value]


def _as_int(value: Any) -> int:
    """Coerce a loosely typed number; anything unusable becomes 0."""
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0


def _lexile(record: Dict[str, Any]) -> int:
    measurements = record.get("measurements") or {}
    english = measurements.get("english") or {}
    return _as_int(english.get("lexile"))


def _cover_art_url(record: Dict[str, Any]) -> str:
    # Records without a published work fall back to the default URL.
    works = record.get("published_works") or []
    first = works[0] if works else {}
    return (first or {}).get("cover_art_url") or "Unknown URL"


def strip_trade_prefix(book_type: str) -> str:
    """'Trade Paperback' -> 'Paperback'."""
    if book_type.startswith(TRADE_PREFIX):
        return book_type[len(TRADE_PREFIX):]
    return book_type


def parse_book(record: Dict[str, Any]) -> Book:
    """
    Normalize a single raw result from the catalog source.

    Every missing, null or falsy field is replaced by the Book default.

    Args:
        record: Single item from the ``results`` list

    Returns:
        Book object
    """
    categories = _values(record.get("categories"))

    return Book(
        title=record.get("title") or "Unknown Title",
        book_type=strip_trade_prefix(record.get("book_type") or "") or "Unknown Book Type",
        lexile=_lexile(record),
        page_count=_as_int(record.get("page_count")),
        categories=categories or ["Uncategorized"],
        authors=_values(record.get("authors")),
        cover_art_url=_cover_art_url(record),
        language=record.get("language") or "Unknown Language",
        isbn=record.get("canonical_isbn") or "Unknown ISBN",
        summary=record.get("summary") or "No Summary Available",
    )


def parse_results(results: List[Dict[str, Any]]) -> List[Book]:
    """Normalize every raw result, keeping upstream order."""
    return [parse_book(record) for record in results]


def decode_categories(categories: str) -> str:
    """
    Restore percent-encoded characters in the categories filter.

    >>> decode_categories("Art%2C Creativity %26 Music")
    'Art, Creativity & Music'
    """
    return unquote(categories or "")
