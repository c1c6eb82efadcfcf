"""
Analysis result utilities for landing page analysis.

Parses and normalizes the structured JSON returned by the completion
provider. The provider is asked for bare JSON but sometimes wraps it in a
markdown code fence, and sometimes leaves fields out. A normalized result
always carries every field, with empty values where nothing was found.
"""

import json
import re
from typing import Any, Dict, List, Optional

from .errors import ParseError

# String fields, in prompt order
ANALYSIS_STRING_FIELDS = [
    'productName',
    'shortDescription',
    'targetAudience',
    'problemSolved',
    'callToAction',
    'tone',
    'category',
    'videoScriptHook',
    'articleAngle',
]

ANALYSIS_LIST_FIELDS = [
    'mainClaims',
    'benefits',
    'ingredients',
    'testimonials',
    'keywordsForSEO',
    'warnings',
]

ANALYSIS_NULLABLE_FIELDS = ['price', 'guarantee']

QUALITY_FIELD = 'overallQuality'
MIN_QUALITY = 1
MAX_QUALITY = 10

_OPENING_FENCE = re.compile(r'^```[\w+-]*[ \t]*\n?')
_CLOSING_FENCE = re.compile(r'\n?```$')


def strip_code_fence(text: Optional[str]) -> str:
    """
    Remove a markdown code fence wrapped around a completion response.

    Handles:
    - "```json\\n{...}\\n```" (fence with language tag)
    - "```\\n{...}\\n```" (bare fence)
    - "{...}" (no fence, returned trimmed)
    """
    if not text:
        return ''

    cleaned = text.strip()
    if cleaned.startswith('```'):
        cleaned = _OPENING_FENCE.sub('', cleaned, count=1)
        cleaned = _CLOSING_FENCE.sub('', cleaned, count=1)

    return cleaned.strip()


def parse_analysis_json(text: Optional[str]) -> Dict[str, Any]:
    """
    Parse a completion response into a dict.

    Raises:
        ParseError: if the text is not a JSON object after fence stripping
    """
    cleaned = strip_code_fence(text)

    try:
        parsed = json.loads(cleaned)
    except ValueError as e:
        raise ParseError(f'Could not parse analysis JSON: {e}')
    except RecursionError:
        raise ParseError('Could not parse analysis JSON: nesting too deep')

    if not isinstance(parsed, dict):
        raise ParseError(f'Analysis JSON must be an object, got {type(parsed).__name__}')

    return parsed


def _as_string(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (list, tuple)):
        return ', '.join(str(item).strip() for item in value if item is not None and str(item).strip())
    return str(value).strip()


def _as_string_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if not isinstance(value, (list, tuple)):
        return []
    return [str(item).strip() for item in value if item is not None and str(item).strip()]


def _as_nullable_string(value: Any) -> Optional[str]:
    text = _as_string(value)
    if not text or text.lower() in ('null', 'none', 'n/a'):
        return None
    return text


def _as_quality(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return None
    return max(MIN_QUALITY, min(MAX_QUALITY, score))


def normalize_analysis(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Build a structurally complete analysis result from parsed JSON.

    Missing string fields become "", missing list fields become [], price
    and guarantee become None when absent, and overallQuality is clamped
    to 1-10 (None when missing or not a number). Unknown keys are dropped.
    """
    raw = raw or {}
    result: Dict[str, Any] = {}

    for field in ANALYSIS_STRING_FIELDS:
        result[field] = _as_string(raw.get(field))

    for field in ANALYSIS_LIST_FIELDS:
        result[field] = _as_string_list(raw.get(field))

    for field in ANALYSIS_NULLABLE_FIELDS:
        result[field] = _as_nullable_string(raw.get(field))

    result[QUALITY_FIELD] = _as_quality(raw.get(QUALITY_FIELD))

    return result


def quality_band(score: Optional[int]) -> str:
    """Map an overall quality score to low (1-3), medium (4-6) or high (7-10)."""
    if score is None:
        return 'unknown'
    if score <= 3:
        return 'low'
    if score <= 6:
        return 'medium'
    return 'high'


def validate_analysis(result: Dict[str, Any]) -> Dict:
    """
    Check a normalized analysis for missing content.

    Returns dict with:
        valid: bool - True if a product name was identified
        empty: list - Field names with no content
        errors: list - Error messages
    """
    report = {
        'valid': True,
        'empty': [],
        'errors': []
    }

    for field in ANALYSIS_STRING_FIELDS + ANALYSIS_LIST_FIELDS:
        if not result.get(field):
            report['empty'].append(field)

    if 'productName' in report['empty']:
        report['valid'] = False
        report['errors'].append('Analysis did not identify a product name')

    return report
