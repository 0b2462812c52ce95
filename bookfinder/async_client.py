"""Async HTTP client for the Book Finder catalog API."""
import httpx
from typing import List, Optional, Dict, Any
import logging

from bookfinder.client import CatalogFetchError, build_params, build_headers, extract_results
from bookfinder.models import DifficultyRange

logger = logging.getLogger(__name__)


class AsyncCatalogClient:
    """Async client for catalog searches."""

    def __init__(
        self,
        base_url: str,
        api_host: str,
        api_key: Optional[str] = None,
        timeout: int = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize async client.

        Args:
            base_url: Search endpoint URL
            api_host: Value for the X-RapidAPI-Host header
            api_key: Upstream credential
            timeout: Request timeout
            transport: Optional transport override
        """
        self.base_url = base_url
        self.headers = build_headers(api_key, api_host)

        # Create async HTTP client
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def search(
        self,
        book_type: Optional[str],
        difficulty: DifficultyRange,
        categories: str
    ) -> List[Dict[str, Any]]:
        """
        Search the catalog asynchronously.

        Raises:
            CatalogFetchError: on network errors, non-2xx status or a bad body
        """
        params = build_params(book_type, difficulty, categories)
        logger.info(f"Async catalog request: {params}")

        try:
            response = await self.client.get(self.base_url, params=params, headers=self.headers)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise CatalogFetchError(f"Catalog returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise CatalogFetchError(f"Async request failed: {e}") from e
        except ValueError as e:
            raise CatalogFetchError(f"Catalog returned invalid JSON: {e}") from e

        results = extract_results(data)
        logger.info(f"Status {response.status_code}, {len(results)} results")
        return results

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
