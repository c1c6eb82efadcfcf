"""
Shared pytest fixtures for Landing Page Analyzer tests.
"""

import json
import pytest
import sys
import importlib.util
from pathlib import Path

from candidate_analysis import (
    AnalysisRequester,
    AnalyzerConfig,
    CandidateAnalyzer,
    CandidateStore,
    FetchedPage,
    FixedIntervalPacer,
)

# Project root for finding Cloud Function modules
PROJECT_ROOT = Path(__file__).parent.parent


def _load_module_from_path(module_name: str, file_path: Path):
    """Load a module from a specific file path."""
    spec = importlib.util.spec_from_file_location(module_name, file_path)
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    return module


# Load Cloud Function module with a unique name at module load time
_landing_page_analyzer_module = _load_module_from_path(
    'landing_page_analyzer_main',
    PROJECT_ROOT / 'landing-page-analyzer' / 'main.py'
)


# ============================================================================
# Sample pages and completion responses
# ============================================================================

LONG_PARAGRAPH = (
    "Joint Flex Pro is a daily supplement made with turmeric, glucosamine and "
    "boswellia to support healthy joints. Thousands of customers report less "
    "stiffness within weeks. Order today with a 60 day money back guarantee."
)


@pytest.fixture
def sample_landing_html():
    """Returns HTML of a typical product landing page."""
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <title>Joint Flex Pro - Official Site</title>
        <meta name="description" content="Natural joint support supplement">
        <meta property="og:description" content="OG description">
        <script>var tracking = "should not appear";</script>
        <style>.x {{ color: red; }}</style>
    </head>
    <body>
        <header><a href="/">Home</a></header>
        <nav><a href="/about">About us</a></nav>
        <h1>Joint Flex Pro</h1>
        <h2>Why it works</h2>
        <h3>OK</h3>
        <p>{LONG_PARAGRAPH}</p>
        <div style="display:none">Hidden upsell text</div>
        <div class="promo hidden">Secret coupon text</div>
        <img src="/img/product-bottle.png" alt="">
        <img src="/img/logo.png">
        <img src="/img/customer.jpg" alt="Happy customer">
        <a href="#top">Back to top</a>
        <a href="javascript:void(0)">Popup</a>
        <a href="https://merchant.example/order">Order now</a>
        <footer>Copyright Joint Flex</footer>
    </body>
    </html>
    """


@pytest.fixture
def analysis_payload():
    """A complete analysis result as the completion provider would return it."""
    return {
        "productName": "Joint Flex Pro",
        "shortDescription": "Daily joint support supplement",
        "mainClaims": ["Less stiffness in weeks"],
        "benefits": ["Joint comfort", "Mobility"],
        "ingredients": ["Turmeric", "Glucosamine", "Boswellia"],
        "targetAudience": "Adults over 40 with joint stiffness",
        "problemSolved": "Joint stiffness",
        "price": "$49",
        "guarantee": "60 days money back",
        "callToAction": "Order today",
        "testimonials": ["I can walk again"],
        "tone": "emotional",
        "category": "wellness",
        "keywordsForSEO": ["joint supplement", "turmeric"],
        "videoScriptHook": "Still waking up stiff?",
        "articleAngle": "What the research says about turmeric for joints",
        "overallQuality": 6,
        "warnings": ["Unsupported medical claims"],
    }


# ============================================================================
# Test doubles
# ============================================================================

class FakeCompletionProvider:
    """Completion provider returning canned responses and recording calls."""

    def __init__(self, response_text='', error=None, is_configured=True):
        self.response_text = response_text
        self.error = error
        self.is_configured = is_configured
        self.calls = []

    def complete(self, system_prompt, user_prompt, temperature, max_tokens):
        self.calls.append({
            'system_prompt': system_prompt,
            'user_prompt': user_prompt,
            'temperature': temperature,
            'max_tokens': max_tokens,
        })
        if self.error is not None:
            raise self.error
        return self.response_text


class FakePageFetcher:
    """Page fetcher serving canned pages keyed by URL.

    A value may be an HTML string, a (final_url, html) tuple, or an
    exception instance to raise.
    """

    def __init__(self, pages=None):
        self.pages = pages or {}
        self.calls = []

    def fetch(self, url):
        self.calls.append(url)
        page = self.pages.get(url)
        if isinstance(page, Exception):
            raise page
        if isinstance(page, tuple):
            final_url, html = page
        else:
            final_url, html = url, page or ''
        return FetchedPage(url=url, final_url=final_url, html=html, status_code=200)


@pytest.fixture
def fake_provider_factory():
    return FakeCompletionProvider


@pytest.fixture
def fake_fetcher_factory():
    return FakePageFetcher


@pytest.fixture
def config(tmp_path):
    """Config pointing at a temporary database, with a dummy API key."""
    return AnalyzerConfig(
        gemini_api_key='test-key',
        database_path=tmp_path / 'candidates.db',
        batch_delay_seconds=2.0,
    )


@pytest.fixture
def store(config):
    return CandidateStore(config.database_path)


@pytest.fixture
def sleeps():
    """Records pacer sleeps instead of sleeping."""
    return []


@pytest.fixture
def build_analyzer(store, config, sleeps):
    """Factory for a CandidateAnalyzer wired to fakes."""
    def _build(fetcher=None, provider=None, response=None, clock=None):
        if provider is None:
            provider = FakeCompletionProvider(response_text=json.dumps(response or {}))
        kwargs = {}
        if clock is not None:
            kwargs['clock'] = clock
        return CandidateAnalyzer(
            store=store,
            fetcher=fetcher or FakePageFetcher(),
            requester=AnalysisRequester(config, provider=provider),
            config=config,
            pacer=FixedIntervalPacer(config.batch_delay_seconds, sleep=sleeps.append),
            **kwargs
        )
    return _build


@pytest.fixture
def mock_flask_request():
    """Factory for creating mock Flask request objects."""
    class MockRequest:
        def __init__(self, json_data=None, method='POST', args=None):
            self._json = json_data
            self.method = method
            self.args = args or {}
            self.data = b''

        def get_json(self, force=False, silent=False):
            return self._json

    return MockRequest


# ============================================================================
# HTTP function fixtures
# ============================================================================

@pytest.fixture
def http_module(monkeypatch):
    """The landing-page-analyzer module, with its analyzer reset after the test."""
    monkeypatch.setattr(_landing_page_analyzer_module, '_analyzer', None)
    return _landing_page_analyzer_module


@pytest.fixture
def analyze_candidate(http_module):
    """Returns analyze_candidate entry point."""
    return http_module.analyze_candidate


@pytest.fixture
def analyze_all_candidates(http_module):
    """Returns analyze_all_candidates entry point."""
    return http_module.analyze_all_candidates


@pytest.fixture
def get_candidate_analysis(http_module):
    """Returns get_candidate_analysis entry point."""
    return http_module.get_candidate_analysis


@pytest.fixture
def create_candidates(http_module):
    """Returns create_candidates entry point."""
    return http_module.create_candidates
