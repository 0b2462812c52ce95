"""Data models for books."""
from dataclasses import dataclass, field, asdict
from typing import List, Dict, Any

# Lowest and highest lexile the catalog source can process.
LEXILE_MIN = -650
LEXILE_MAX = 2150


@dataclass
class Book:
    """Normalized book representation."""
    title: str = "Unknown Title"
    book_type: str = "Unknown Book Type"
    lexile: int = 0
    page_count: int = 0
    categories: List[str] = field(default_factory=lambda: ["Uncategorized"])
    authors: List[str] = field(default_factory=list)
    cover_art_url: str = "Unknown URL"
    language: str = "Unknown Language"
    isbn: str = "Unknown ISBN"
    summary: str = "No Summary Available"

    @property
    def category(self) -> str:
        """The grouping key: only the first listed category counts."""
        return self.categories[0]

    @property
    def authors_str(self) -> str:
        """Format authors as comma-separated string."""
        return ", ".join(self.authors) if self.authors else "Unknown"

    @property
    def categories_str(self) -> str:
        """Format categories as comma-separated string."""
        return ", ".join(self.categories)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DifficultyRange:
    """Inclusive lexile range sent to the catalog source."""
    min: int = LEXILE_MIN
    max: int = LEXILE_MAX
