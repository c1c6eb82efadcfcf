"""
Landing page fetching.

Follows redirects (affiliate hop links usually bounce through one or more
trackers) and returns the raw HTML together with the final URL.
"""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

import requests

from .config import AnalyzerConfig
from .errors import FetchError
from .logging_config import get_logger

logger = get_logger('page_fetcher')


@dataclass
class FetchedPage:
    url: str
    final_url: str
    html: str
    status_code: int


class PageFetcher:
    """Fetch landing pages with a browser-like session."""

    def __init__(self, config: Optional[AnalyzerConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or AnalyzerConfig()
        self.session = session or requests.Session()
        self.session.max_redirects = self.config.max_redirects

    def _headers(self) -> dict:
        return {
            'User-Agent': self.config.user_agent,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': self.config.accept_language,
        }

    def fetch(self, url: str) -> FetchedPage:
        """
        Fetch a URL, following up to max_redirects redirects.

        Raises:
            FetchError: on invalid URL, transport error, timeout or status >= 400
        """
        if not url or urlparse(url).scheme not in ('http', 'https'):
            raise FetchError(f'Invalid URL: {url!r}')

        try:
            response = self.session.get(
                url,
                headers=self._headers(),
                timeout=self.config.fetch_timeout,
                allow_redirects=True,
            )
        except requests.exceptions.Timeout:
            raise FetchError('Request timed out')
        except requests.exceptions.TooManyRedirects:
            raise FetchError('Too many redirects')
        except requests.exceptions.RequestException as e:
            raise FetchError(f'Request failed: {str(e)}')

        final_url = response.url or url

        if response.status_code >= 400:
            raise FetchError(
                f'HTTP error: {response.status_code}',
                status_code=response.status_code,
                final_url=final_url,
            )

        if final_url != url:
            logger.info(f"Resolved {url} -> {final_url}")

        return FetchedPage(
            url=url,
            final_url=final_url,
            html=response.text,
            status_code=response.status_code,
        )
