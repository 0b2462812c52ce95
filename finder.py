#!/usr/bin/env python3
"""Book Finder CLI - reading level recommendations by category."""
import argparse
import asyncio
import sys
import json
from tabulate import tabulate
from bookfinder.client import CatalogClient
from bookfinder.async_client import AsyncCatalogClient
from bookfinder.database import open_store
from bookfinder.difficulty import READING_LEVELS
from bookfinder.models import Book
from bookfinder.service import RecommendationService, handle_books_request
from bookfinder.config import Config
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

GENRES = ["fiction", "nonfiction", ""]
CATEGORIES = [
    "Animals, Bugs & Pets",
    "Art, Creativity & Music",
    "General Literature",
    "Hobbies, Sports & Outdoors",
    "Science Fiction & Fantasy",
    "Real Life",
    "Science & Technology",
    "Mystery & Suspense",
    "Reference",
]


def request_params(args) -> dict:
    """Build the query parameters a browser form would send."""
    return {
        "book_type": args.genre,
        "reading_level": args.level,
        "categories": args.categories,
    }


async def run_search(args, config: Config):
    """Search with the sync or async catalog client."""
    store = open_store(config)

    try:
        if args.use_async:
            async with AsyncCatalogClient(
                config.CATALOG_API_URL,
                config.CATALOG_API_HOST,
                api_key=config.CATALOG_API_KEY,
                timeout=config.DEFAULT_TIMEOUT
            ) as client:
                return await handle_books_request(RecommendationService(client, store, config.MAX_CONCURRENT), request_params(args))

        with CatalogClient(
            config.CATALOG_API_URL,
            config.CATALOG_API_HOST,
            api_key=config.CATALOG_API_KEY,
            timeout=config.DEFAULT_TIMEOUT
        ) as client:
            return await handle_books_request(RecommendationService(client, store, config.MAX_CONCURRENT), request_params(args))

    finally:
        store.close()


def display_books(grouped: dict, format_type: str):
    """Display grouped books in specified format."""
    if format_type == "json":
        print(json.dumps(grouped, indent=2))
        return

    if not grouped:
        print("No books found.")
        return

    for category, records in grouped.items():
        books = [Book(**record) for record in records]

        if format_type == "table":
            headers = ["Lexile", "Title", "Authors", "Type", "Pages", "Categories"]
            rows = [
                [
                    book.lexile,
                    book.title[:50] + "..." if len(book.title) > 50 else book.title,
                    book.authors_str[:30] + "..." if len(book.authors_str) > 30 else book.authors_str,
                    book.book_type,
                    book.page_count or "N/A",
                    book.categories_str[:30] + "..." if len(book.categories_str) > 30 else book.categories_str,
                ]
                for book in books
            ]
            print(f"\n{category}")
            print(tabulate(rows, headers=headers, tablefmt="grid"))

        elif format_type == "compact":
            print(f"\n{category}")
            for i, book in enumerate(books, 1):
                print(f"{i}. [{book.lexile}] {book.title} - {book.authors_str}")


def search_books(args, config: Config) -> int:
    status, body = asyncio.run(run_search(args, config))
    if status != 200:
        print(body["Error"], file=sys.stderr)
        return 1
    display_books(body, args.format)
    return 0


def clear_store(args, config: Config) -> int:
    """Empty the configured store."""
    store = open_store(config)
    try:
        if not store.clear():
            return 1
        print("✅ Store cleared")
        return 0
    finally:
        store.close()


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Book Finder - books by reading level, grouped by category",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Categories:\n  " + "\n  ".join(CATEGORIES) + """

Examples:
  # Beginner fiction about animals
  %(prog)s search --genre fiction --level beginner --categories "Animals, Bugs & Pets"

  # Several categories, percent-encoded as a browser would send them
  %(prog)s search --level advanced --categories "Art%%2C Creativity %%26 Music;Reference" --format json
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Search command
    search_parser = subparsers.add_parser("search", help="Search for books")
    search_parser.add_argument("--genre", choices=GENRES, default="", help="Book type (default: any)")
    search_parser.add_argument("--level", choices=sorted(READING_LEVELS), default="", help="Reading level (default: any)")
    search_parser.add_argument("--categories", default="", help="Semicolon-separated categories")
    search_parser.add_argument("--format", choices=["table", "json", "compact"], default="table", help="Output format")
    search_parser.add_argument("--async", dest="use_async", action="store_true", help="Use async client")

    # Clear command
    subparsers.add_parser("clear", help="Delete every stored book")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    config = Config()

    try:
        if args.command == "search":
            sys.exit(search_books(args, config))

        elif args.command == "clear":
            sys.exit(clear_store(args, config))

    except KeyboardInterrupt:
        logger.info("\n⚠️  Interrupted by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"❌ Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
