"""
Unit tests for AnalyzerConfig.
"""

from pathlib import Path

import pytest

from candidate_analysis import AnalyzerConfig


class TestFromEnv:
    """Tests for AnalyzerConfig.from_env()"""

    def test_defaults(self):
        config = AnalyzerConfig.from_env({})
        assert config.gemini_api_key is None
        assert config.is_provider_configured is False
        assert config.fetch_timeout == 30
        assert config.max_redirects == 10
        assert config.batch_delay_seconds == 2.0
        assert config.stale_analysis_after_seconds == 900
        assert config.log_level == 'INFO'

    def test_reads_environment(self):
        config = AnalyzerConfig.from_env({
            'GEMINI_API_KEY': 'abc',
            'GEMINI_MODEL': 'gemini-test',
            'CANDIDATE_DB_PATH': '/tmp/c.db',
            'FETCH_TIMEOUT': '10',
            'ANALYSIS_BATCH_DELAY': '0.5',
            'ANALYSIS_STALE_AFTER': '60',
            'LOG_LEVEL': 'debug',
        })
        assert config.is_provider_configured is True
        assert config.gemini_model == 'gemini-test'
        assert config.database_path == Path('/tmp/c.db')
        assert config.fetch_timeout == 10
        assert config.batch_delay_seconds == 0.5
        assert config.stale_analysis_after_seconds == 60
        assert config.log_level == 'DEBUG'

    def test_blank_key_is_unconfigured(self):
        assert AnalyzerConfig.from_env({'GEMINI_API_KEY': ''}).is_provider_configured is False

    @pytest.mark.parametrize("value", ["", "abc", "-5"])
    def test_bad_numbers_keep_defaults(self, value):
        config = AnalyzerConfig.from_env({'FETCH_TIMEOUT': value, 'ANALYSIS_BATCH_DELAY': value})
        assert config.fetch_timeout == 30
        assert config.batch_delay_seconds == 2.0

    def test_zero_delay_allowed(self):
        assert AnalyzerConfig.from_env({'ANALYSIS_BATCH_DELAY': '0'}).batch_delay_seconds == 0.0
