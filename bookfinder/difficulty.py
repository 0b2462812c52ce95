"""Reading level to lexile range mapping."""
from typing import Optional

from bookfinder.models import DifficultyRange, LEXILE_MIN, LEXILE_MAX

READING_LEVELS = {
    "beginner": DifficultyRange(LEXILE_MIN, 500),
    "intermediate": DifficultyRange(500, 1500),
    "advanced": DifficultyRange(1500, LEXILE_MAX),
}

FULL_RANGE = DifficultyRange(LEXILE_MIN, LEXILE_MAX)


def resolve_range(level: Optional[str]) -> DifficultyRange:
    """Return the lexile range for a reading level, or the full range if unknown."""
    return READING_LEVELS.get(level or "", FULL_RANGE)
