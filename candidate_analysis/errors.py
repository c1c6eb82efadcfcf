"""
Error types for the landing page analysis pipeline.

Every pipeline error carries the stage it happened in, a human readable
message and whether retrying could help. to_dict() returns those three
fields as a plain dict:

    {"stage": "fetch", "message": "Scraping failed: HTTP error: 503", "recoverable": true}
"""

from typing import Optional

FETCH_ERROR_PREFIX = 'Scraping failed: '


class AnalysisError(Exception):
    """Base class for failures inside a single analysis attempt."""

    stage = 'processing'
    recoverable = True

    def __init__(self, message: str, recoverable: Optional[bool] = None):
        super().__init__(message)
        self.message = message
        if recoverable is not None:
            self.recoverable = recoverable

    def to_dict(self) -> dict:
        return {
            'stage': self.stage,
            'message': self.message,
            'recoverable': self.recoverable,
        }


class ConfigurationError(AnalysisError):
    """The completion provider has no credential."""

    stage = 'configuration'
    recoverable = False


class FetchError(AnalysisError):
    """The landing page could not be retrieved."""

    stage = 'fetch'

    def __init__(self, message: str, status_code: Optional[int] = None,
                 final_url: Optional[str] = None):
        # 4xx responses will not change on retry, except rate limiting
        recoverable = not (status_code is not None and 400 <= status_code < 500 and status_code != 429)
        super().__init__(FETCH_ERROR_PREFIX + message, recoverable=recoverable)
        self.status_code = status_code
        self.final_url = final_url


class ExtractionError(AnalysisError):
    """The page was reachable but did not contain enough text."""

    stage = 'extract'

    def __init__(self, message: str, final_url: Optional[str] = None):
        super().__init__(message, recoverable=False)
        self.final_url = final_url


class ProviderError(AnalysisError):
    """The completion provider failed or timed out."""

    stage = 'ai_analysis'


class EmptyResponseError(ProviderError):
    """The completion provider answered with no text."""


class ParseError(AnalysisError):
    """The completion response is not a JSON object."""

    stage = 'parse'


class CandidateNotFoundError(LookupError):
    """No candidate exists with the requested id."""

    def __init__(self, candidate_id):
        super().__init__(f'Candidate {candidate_id} not found')
        self.candidate_id = candidate_id


class AnalysisInProgressError(Exception):
    """Another run currently holds the analyzing claim on a candidate."""

    def __init__(self, candidate_id):
        super().__init__(f'Candidate {candidate_id} is already being analyzed')
        self.candidate_id = candidate_id
