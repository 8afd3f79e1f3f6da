"""
Unit tests for metadata string normalization.
"""

import pytest

from media_art_cache.core.normalizer import strip_invalid_entities


STRIP_CASES = [
    ("nothing to strip here", "nothing to strip here"),
    ("Upper Case gOEs dOwN", "upper case goes down"),
    ("o", "o"),
    ("A", "a"),
    ("cool album (CD1)", "cool album"),
    ("cool album [CD1]", "cool album"),
    ("cool album {CD1}", "cool album"),
    ("cool album <CD1>", "cool album"),
    (" ", ""),
    ("     a     ", "a"),
    ("messy #title & stuff?", "messy title stuff"),
    ("Unbalanced [brackets", "unbalanced brackets"),
    ("Unbalanced (brackets", "unbalanced brackets"),
    ("Unbalanced <brackets", "unbalanced brackets"),
    ("Unbalanced brackets)", "unbalanced brackets"),
    ("Unbalanced brackets]", "unbalanced brackets"),
    ("Unbalanced brackets>", "unbalanced brackets"),
    ("Live at *WEMBLEY* dude!", "live at wembley dude"),
    ("met[xX[x]alli]ca", "metallica"),
]


class TestStripInvalidEntities:
    """Test the canonical comparison form."""

    @pytest.mark.parametrize("original,expected", STRIP_CASES)
    def test_strip_cases(self, original, expected):
        """Test known inputs normalize to the expected form."""
        assert strip_invalid_entities(original) == expected

    def test_none_stays_none(self):
        """Test absent values are not turned into strings."""
        assert strip_invalid_entities(None) is None

    def test_empty_stays_empty(self):
        """Test the empty string is preserved."""
        assert strip_invalid_entities("") == ""

    def test_tabs_become_single_spaces(self):
        """Test tabs are converted and space runs collapsed."""
        assert strip_invalid_entities("a\t\tb   c") == "a b c"

    def test_only_block_content_removed(self):
        """Test text after a bracketed block is kept."""
        assert strip_invalid_entities("Abbey Road (Remastered) Deluxe") == "abbey road deluxe"

    def test_earliest_block_wins(self):
        """Test the opening bracket appearing first is paired first."""
        assert strip_invalid_entities("a [b (c] d) e") == "a d e"

    def test_non_ascii_space_is_not_trimmed(self):
        """Test only ASCII whitespace is stripped from the ends."""
        assert strip_invalid_entities("a\u00a0") == "a\u00a0"

    def test_punctuation_kept(self):
        """Test characters outside the invalid set survive."""
        assert strip_invalid_entities("Sgt. Pepper's, Vol. 1") == "sgt. peppers, vol. 1"

    @pytest.mark.parametrize("original", [value for value, _ in STRIP_CASES] + [
        "The ((Double)) Album",
        "Björk [Live]",
        "  __spaced__  out  ",
    ])
    def test_idempotent(self, original):
        """Test normalizing twice equals normalizing once."""
        once = strip_invalid_entities(original)
        assert strip_invalid_entities(once) == once
