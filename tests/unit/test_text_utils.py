"""
Unit tests for text utilities.
"""

import pytest

from candidate_analysis import (
    MAX_BODY_TEXT_LENGTH,
    TRUNCATION_MARKER,
    collapse_whitespace,
    is_blank,
    is_generic_category,
    truncate_text,
)


class TestCollapseWhitespace:
    """Tests for collapse_whitespace()"""

    def test_collapses_spaces_and_newlines(self):
        assert collapse_whitespace("  Hello \n\n\t World  ") == "Hello World"

    def test_removes_control_characters(self):
        assert collapse_whitespace("Hel\x00lo") == "Hello"

    @pytest.mark.parametrize("text", [None, "", "   \n  "])
    def test_empty(self, text):
        assert collapse_whitespace(text) == ""


class TestTruncateText:
    """Tests for truncate_text()"""

    def test_short_text_unchanged(self):
        assert truncate_text("Hello", 10) == ("Hello", False)

    def test_exact_limit_unchanged(self):
        assert truncate_text("x" * 10, 10) == ("x" * 10, False)

    def test_long_text_truncated(self):
        text, truncated = truncate_text("abcdefghij", 4)
        assert truncated is True
        assert text == "abcd" + TRUNCATION_MARKER

    def test_custom_marker(self):
        assert truncate_text("abcdefghij", 4, "...") == ("abcd...", True)

    def test_default_limit(self):
        text, truncated = truncate_text("y" * (MAX_BODY_TEXT_LENGTH + 1))
        assert truncated is True
        assert len(text) == MAX_BODY_TEXT_LENGTH + len(TRUNCATION_MARKER)

    def test_empty(self):
        assert truncate_text("") == ("", False)
        assert truncate_text(None) == ("", False)


class TestIsBlank:
    """Tests for is_blank()"""

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_blank(self, value):
        assert is_blank(value) is True

    @pytest.mark.parametrize("value", ["text", " x ", 0])
    def test_not_blank(self, value):
        assert is_blank(value) is False


class TestIsGenericCategory:
    """Tests for is_generic_category()"""

    @pytest.mark.parametrize("value", [None, "", "unknown", "Unknown", " UNKNOWN ", "uncategorized", "other"])
    def test_generic(self, value):
        assert is_generic_category(value) is True

    @pytest.mark.parametrize("value", ["wellness", "beauty", "fitness", "general"])
    def test_meaningful(self, value):
        assert is_generic_category(value) is False
