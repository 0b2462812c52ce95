"""Search the catalog, store the results and group them by category."""
import asyncio
import inspect
import uuid
from typing import Dict, Any, List, Optional, Tuple
import logging

from bookfinder.client import CatalogFetchError
from bookfinder.database import PersistError
from bookfinder.difficulty import resolve_range
from bookfinder.models import Book
from bookfinder.parse import parse_results, decode_categories

logger = logging.getLogger(__name__)

GENERIC_ERROR = {"Error": "Invalid request :("}


def group_by_category(books: List[Book]) -> Dict[str, List[Book]]:
    """
    Group books by their first category.

    Input order is kept within each group, and groups appear in the order
    their category is first seen.
    """
    grouped: Dict[str, List[Book]] = {}
    for book in books:
        grouped.setdefault(book.category, []).append(book)
    return grouped


class RecommendationService:
    """Runs one search-and-group cycle per call against a catalog client and a store."""

    def __init__(self, client, store, max_concurrent: int = 5):
        """
        Args:
            client: CatalogClient or AsyncCatalogClient
            store: Database or MemoryDatabase
            max_concurrent: Maximum concurrent saves, capped at the store's pool size
        """
        self.client = client
        self.store = store
        pool_size = getattr(store, "max_conn", None)
        self.max_concurrent = min(max_concurrent, pool_size) if pool_size else max_concurrent

    async def _fetch(self, book_type, difficulty, categories) -> List[Dict[str, Any]]:
        if inspect.iscoroutinefunction(self.client.search):
            return await self.client.search(book_type, difficulty, categories)
        return await asyncio.to_thread(self.client.search, book_type, difficulty, categories)

    async def _save(self, book: Book, search_id: str, semaphore: asyncio.Semaphore):
        # Use semaphore to limit concurrency
        async with semaphore:
            saved = await asyncio.to_thread(self.store.insert_book, book, search_id)
        if not saved:
            raise PersistError(f"Error saving book {book.title}")
        logger.info(f"Book {book.title} saved to database")

    async def recommend(
        self,
        book_type: Optional[str],
        reading_level: Optional[str],
        categories: Optional[str]
    ) -> Dict[str, List[Book]]:
        """
        Fetch, store and group books for one request.

        Args:
            book_type: Genre filter, empty for any
            reading_level: beginner, intermediate, advanced or empty
            categories: Semicolon-joined, percent-encoded category names

        Returns:
            Mapping of category to books in ascending lexile order

        Raises:
            CatalogFetchError: the catalog source failed
            PersistError: any book failed to save
        """
        search_id = uuid.uuid4().hex
        # A fresh id holds no rows yet; the cleanup that matters is in the finally.
        await asyncio.to_thread(self.store.clear, search_id)

        try:
            difficulty = resolve_range(reading_level)
            decoded = decode_categories(categories)
            logger.info(f"Searching {book_type or 'any'} books, lexile {difficulty.min}..{difficulty.max}, categories {decoded!r}")

            results = await self._fetch(book_type, difficulty, decoded)
            books = parse_results(results)

            # Join every save before failing so none lands after the cleanup.
            semaphore = asyncio.Semaphore(self.max_concurrent)
            outcomes = await asyncio.gather(
                *(self._save(book, search_id, semaphore) for book in books),
                return_exceptions=True
            )
            failures = [outcome for outcome in outcomes if isinstance(outcome, Exception)]
            if failures:
                raise failures[0]

            stored = await asyncio.to_thread(self.store.find_all_sorted_by_difficulty, search_id)
            grouped = group_by_category(stored)
            logger.info(f"Documents sorted: {len(stored)} books in {len(grouped)} categories")
            return grouped
        finally:
            await asyncio.to_thread(self.store.clear, search_id)


async def handle_books_request(service: RecommendationService, params: Dict[str, Any]) -> Tuple[int, Any]:
    """
    Answer a ``/books`` style query.

    Args:
        service: RecommendationService to run
        params: Query parameters ``book_type``, ``reading_level``, ``categories``

    Returns:
        (status, body): 200 and the grouped books as dicts, or 400 and a
        generic error body
    """
    try:
        grouped = await service.recommend(
            params.get("book_type"),
            params.get("reading_level"),
            params.get("categories"),
        )
    except (CatalogFetchError, PersistError) as e:
        logger.error(f"Search failed: {e}")
        return 400, GENERIC_ERROR
    except Exception as e:
        logger.error(f"Unexpected error during search: {e}", exc_info=True)
        return 400, GENERIC_ERROR

    body = {category: [book.to_dict() for book in books] for category, books in grouped.items()}
    return 200, body
