"""HTTP client for the Book Finder catalog API."""
import requests
from typing import Optional, Dict, Any, List
import logging

from bookfinder.models import DifficultyRange

logger = logging.getLogger(__name__)

RESULTS_PER_PAGE = 25
PAGE = 1


class CatalogFetchError(Exception):
    """The catalog source could not be reached or returned an error."""


def build_params(book_type: Optional[str], difficulty: DifficultyRange, categories: str) -> Dict[str, Any]:
    """
    Build query parameters for a catalog search.

    Args:
        book_type: Genre filter, empty for any
        difficulty: Lexile range
        categories: Semicolon-joined category names, already decoded

    Returns:
        Query parameters for the search endpoint
    """
    return {
        "book_type": book_type or "",
        "categories": categories,
        "lexile_min": difficulty.min,
        "lexile_max": difficulty.max,
        "results_per_page": RESULTS_PER_PAGE,
        "page": PAGE,
    }


def build_headers(api_key: Optional[str], api_host: str) -> Dict[str, str]:
    """Build RapidAPI auth headers. The key is never logged."""
    headers = {"X-RapidAPI-Host": api_host}
    if api_key:
        headers["X-RapidAPI-Key"] = api_key
    else:
        logger.warning("No catalog API key configured")
    return headers


def extract_results(data: Any) -> List[Dict[str, Any]]:
    """Pull the raw result list out of a search response body."""
    if not isinstance(data, dict):
        raise CatalogFetchError("Unexpected response body from catalog source")
    return data.get("results") or []


class CatalogClient:
    """Client for the Book Finder catalog API. A single page, no retries."""

    def __init__(
        self,
        base_url: str,
        api_host: str,
        api_key: Optional[str] = None,
        timeout: int = 10
    ):
        """
        Initialize catalog client.

        Args:
            base_url: Search endpoint URL
            api_host: Value for the X-RapidAPI-Host header
            api_key: Upstream credential, supplied from configuration
            timeout: Request timeout in seconds
        """
        self.base_url = base_url
        self.timeout = timeout
        self.headers = build_headers(api_key, api_host)

        # Create session for connection pooling
        self.session = requests.Session()

    def search(
        self,
        book_type: Optional[str],
        difficulty: DifficultyRange,
        categories: str
    ) -> List[Dict[str, Any]]:
        """
        Search the catalog.

        Args:
            book_type: Genre filter, empty for any
            difficulty: Lexile range
            categories: Semicolon-joined category names

        Returns:
            Raw result records

        Raises:
            CatalogFetchError: on network errors, non-2xx status or a bad body
        """
        params = build_params(book_type, difficulty, categories)
        logger.info(f"Catalog request: {params}")

        try:
            response = self.session.get(
                self.base_url,
                params=params,
                headers=self.headers,
                timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.Timeout as e:
            raise CatalogFetchError(f"Catalog request timed out: {e}") from e
        except requests.exceptions.HTTPError as e:
            raise CatalogFetchError(f"Catalog returned {e.response.status_code}") from e
        except requests.exceptions.RequestException as e:
            raise CatalogFetchError(f"Catalog request failed: {e}") from e
        except ValueError as e:
            raise CatalogFetchError(f"Catalog returned invalid JSON: {e}") from e

        results = extract_results(data)
        logger.info(f"Success: {response.status_code}, {len(results)} results")
        return results

    def close(self):
        """Close the session."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
