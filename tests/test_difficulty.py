"""Tests for reading level ranges."""
import pytest

from bookfinder.difficulty import resolve_range
from bookfinder.models import DifficultyRange


@pytest.mark.parametrize("level,expected", [
    ("beginner", (-650, 500)),
    ("intermediate", (500, 1500)),
    ("advanced", (1500, 2150)),
])
def test_known_levels(level, expected):
    """Test each reading level maps to its documented range."""
    difficulty = resolve_range(level)
    assert (difficulty.min, difficulty.max) == expected


@pytest.mark.parametrize("level", [None, "", "expert", "Beginner", " beginner"])
def test_unknown_level_uses_full_range(level):
    """Test unrecognized or missing levels fall back to the full range."""
    assert resolve_range(level) == DifficultyRange(-650, 2150)
