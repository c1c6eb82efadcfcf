"""
Text processing utilities for landing page analysis.

Body text sent to the completion provider is limited to 8000 characters.
Text exceeding this limit is cut and marked so the model knows the page
continued.
"""

import re
from typing import Optional, Tuple

MAX_BODY_TEXT_LENGTH = 8000
TRUNCATION_MARKER = '... [truncated]'

# Categories that count as "not set" and may be replaced by the analysis
GENERIC_CATEGORIES = {'', 'unknown', 'uncategorized', 'other'}


def collapse_whitespace(text: Optional[str]) -> str:
    """
    Collapse runs of whitespace (including newlines) into single spaces.

    Examples:
        >>> collapse_whitespace("  Hello \\n\\n  World  ")
        'Hello World'
    """
    if not text:
        return ''

    # Remove control characters except whitespace
    text = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]', '', text)
    text = re.sub(r'\s+', ' ', text)
    text = re.sub(r'\n+', '\n', text)
    return text.strip()


def truncate_text(
    text: str,
    max_length: int = MAX_BODY_TEXT_LENGTH,
    marker: str = TRUNCATION_MARKER,
) -> Tuple[str, bool]:
    """
    Truncate text to max_length characters and append a marker when cut.

    Args:
        text: The text to truncate
        max_length: Maximum length before the marker (default 8000)
        marker: Appended when the text was cut

    Returns:
        Tuple of (truncated_text, was_truncated)

    Examples:
        >>> truncate_text("short", 10)
        ('short', False)

        >>> truncate_text("abcdefghij", 4, '...')
        ('abcd...', True)
    """
    if not text:
        return ('', False)

    if len(text) <= max_length:
        return (text, False)

    return (text[:max_length] + marker, True)


def is_blank(value) -> bool:
    """True for None and for strings that are empty after trimming."""
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def is_generic_category(value) -> bool:
    """True when a category is missing or one of the placeholder values."""
    if is_blank(value):
        return True
    return str(value).strip().lower() in GENERIC_CATEGORIES
