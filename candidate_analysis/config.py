"""
Configuration for the landing page analysis service.

All settings live on a single AnalyzerConfig object that is handed to the
fetcher, requester, store and orchestrator constructors. Only from_env()
touches the process environment.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

USER_AGENT = 'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
DEFAULT_DB_PATH = Path('database/candidates.db')


@dataclass
class AnalyzerConfig:
    """Settings shared by every stage of the analysis pipeline."""

    gemini_api_key: Optional[str] = None
    gemini_model: str = 'gemini-2.0-flash'
    database_path: Path = DEFAULT_DB_PATH

    # Page fetching
    fetch_timeout: int = 30
    max_redirects: int = 10
    user_agent: str = USER_AGENT
    accept_language: str = 'en-US,en;q=0.9,it;q=0.8'

    # Completion provider
    temperature: float = 0.3
    max_output_tokens: int = 2000
    provider_timeout: int = 60

    # Content limits
    body_text_limit: int = 8000
    min_body_text_length: int = 100

    # Batch processing
    batch_delay_seconds: float = 2.0
    stale_analysis_after_seconds: int = 900

    log_level: str = 'INFO'

    @property
    def is_provider_configured(self) -> bool:
        return bool(self.gemini_api_key)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'AnalyzerConfig':
        """Build a config from environment variables, keeping defaults for bad values."""
        env = os.environ if environ is None else environ
        defaults = cls()

        return cls(
            gemini_api_key=env.get('GEMINI_API_KEY') or None,
            gemini_model=env.get('GEMINI_MODEL') or defaults.gemini_model,
            database_path=Path(env.get('CANDIDATE_DB_PATH') or defaults.database_path),
            fetch_timeout=_int_setting(env.get('FETCH_TIMEOUT'), defaults.fetch_timeout),
            batch_delay_seconds=_float_setting(env.get('ANALYSIS_BATCH_DELAY'), defaults.batch_delay_seconds),
            stale_analysis_after_seconds=_int_setting(
                env.get('ANALYSIS_STALE_AFTER'), defaults.stale_analysis_after_seconds
            ),
            log_level=(env.get('LOG_LEVEL') or defaults.log_level).upper(),
        )


def _int_setting(value: Optional[str], default: int) -> int:
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


def _float_setting(value: Optional[str], default: float) -> float:
    if value is None or not value.strip():
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed >= 0 else default
