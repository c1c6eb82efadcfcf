"""Landing page analysis for product candidates."""

from .config import AnalyzerConfig

from .errors import (
    AnalysisError,
    AnalysisInProgressError,
    CandidateNotFoundError,
    ConfigurationError,
    EmptyResponseError,
    ExtractionError,
    FetchError,
    ParseError,
    ProviderError,
)

from .text_utils import (
    MAX_BODY_TEXT_LENGTH,
    TRUNCATION_MARKER,
    collapse_whitespace,
    truncate_text,
    is_blank,
    is_generic_category,
)

from .analysis_utils import (
    ANALYSIS_STRING_FIELDS,
    ANALYSIS_LIST_FIELDS,
    strip_code_fence,
    parse_analysis_json,
    normalize_analysis,
    quality_band,
    validate_analysis,
)

from .content_extractor import ExtractedDocument, extract_document
from .page_fetcher import FetchedPage, PageFetcher
from .analysis_requester import AnalysisRequester, GeminiCompletionProvider
from .store import CandidateStore
from .orchestrator import CandidateAnalyzer, FixedIntervalPacer

__all__ = [
    # Configuration
    'AnalyzerConfig',
    # Errors
    'AnalysisError',
    'AnalysisInProgressError',
    'CandidateNotFoundError',
    'ConfigurationError',
    'EmptyResponseError',
    'ExtractionError',
    'FetchError',
    'ParseError',
    'ProviderError',
    # Text utilities
    'MAX_BODY_TEXT_LENGTH',
    'TRUNCATION_MARKER',
    'collapse_whitespace',
    'truncate_text',
    'is_blank',
    'is_generic_category',
    # Analysis utilities
    'ANALYSIS_STRING_FIELDS',
    'ANALYSIS_LIST_FIELDS',
    'strip_code_fence',
    'parse_analysis_json',
    'normalize_analysis',
    'quality_band',
    'validate_analysis',
    # Pipeline
    'ExtractedDocument',
    'extract_document',
    'FetchedPage',
    'PageFetcher',
    'AnalysisRequester',
    'GeminiCompletionProvider',
    'CandidateStore',
    'CandidateAnalyzer',
    'FixedIntervalPacer',
]
