"""
Landing page content extraction.

Turns raw HTML into an ExtractedDocument: title, meta description,
headings, flattened body text, images and links. Never raises on bad
markup; missing elements just come back empty.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from bs4 import BeautifulSoup

from .text_utils import MAX_BODY_TEXT_LENGTH, collapse_whitespace, truncate_text

MAX_HEADINGS = 30
MAX_IMAGES = 10
MAX_LINKS = 20
MIN_HEADING_LENGTH = 3

NON_CONTENT_TAGS = ['script', 'style', 'noscript', 'nav', 'footer', 'header', 'iframe', 'svg']
HIDDEN_STYLE = re.compile(r'display\s*:\s*none', re.I)


@dataclass
class ExtractedDocument:
    url: str = ''
    final_url: str = ''
    title: str = ''
    meta_description: str = ''
    headings: List[str] = field(default_factory=list)
    body_text: str = ''
    images: List[Dict[str, str]] = field(default_factory=list)
    links: List[str] = field(default_factory=list)
    # Length of the body text before truncation
    raw_text_length: int = 0

    def to_dict(self) -> dict:
        return {
            'url': self.url,
            'final_url': self.final_url,
            'title': self.title,
            'meta_description': self.meta_description,
            'headings': list(self.headings),
            'body_text': self.body_text,
            'images': [dict(image) for image in self.images],
            'links': list(self.links),
            'raw_text_length': self.raw_text_length,
        }


def _remove_non_content(soup: BeautifulSoup) -> None:
    """Drop scripts, chrome and hidden elements before reading text."""
    for element in soup.find_all(NON_CONTENT_TAGS):
        element.decompose()

    hidden = soup.find_all(style=HIDDEN_STYLE) + soup.find_all(class_='hidden')
    for element in hidden:
        # Already gone if an ancestor was removed first
        if element.decomposed:
            continue
        element.decompose()


def _meta_content(soup: BeautifulSoup, **attrs) -> str:
    tag = soup.find('meta', attrs=attrs)
    if not tag:
        return ''
    content = tag.get('content')
    return content.strip() if isinstance(content, str) else ''


def extract_title(soup: BeautifulSoup) -> str:
    """Document <title>, then the first <h1>, else empty."""
    title_tag = soup.find('title')
    if title_tag:
        title = title_tag.get_text(strip=True)
        if title:
            return title

    h1_tag = soup.find('h1')
    if h1_tag:
        return h1_tag.get_text(strip=True)

    return ''


def extract_meta_description(soup: BeautifulSoup) -> str:
    return (
        _meta_content(soup, name='description') or
        _meta_content(soup, property='og:description')
    )


def extract_headings(soup: BeautifulSoup) -> List[str]:
    headings = []
    for element in soup.find_all(['h1', 'h2', 'h3', 'h4']):
        text = collapse_whitespace(element.get_text(separator=' '))
        if len(text) >= MIN_HEADING_LENGTH:
            headings.append(text)
    return headings[:MAX_HEADINGS]


def extract_images(soup: BeautifulSoup) -> List[Dict[str, str]]:
    images = []
    for img in soup.find_all('img'):
        src = (img.get('src') or '').strip()
        alt = (img.get('alt') or '').strip()
        if src and (alt or 'product' in src.lower()):
            images.append({'src': src, 'alt': alt})
        if len(images) >= MAX_IMAGES:
            break
    return images


def extract_links(soup: BeautifulSoup) -> List[str]:
    links = []
    for anchor in soup.find_all('a', href=True):
        href = (anchor.get('href') or '').strip()
        if not href or href.startswith('#') or href.lower().startswith('javascript:'):
            continue
        links.append(href)
        if len(links) >= MAX_LINKS:
            break
    return links


def extract_body_text(soup: BeautifulSoup) -> str:
    """All remaining visible text, whitespace collapsed."""
    container = soup.find('body') or soup
    return collapse_whitespace(container.get_text(separator=' '))


def extract_document(
    html: Optional[str],
    url: str = '',
    final_url: str = '',
    max_body_length: int = MAX_BODY_TEXT_LENGTH,
) -> ExtractedDocument:
    """
    Parse raw HTML into an ExtractedDocument.

    Args:
        html: Raw page HTML (None or empty gives an empty document)
        url: The URL that was requested
        final_url: The URL after redirects
        max_body_length: Body text limit before the truncation marker

    Returns:
        ExtractedDocument with raw_text_length set to the untruncated length
    """
    document = ExtractedDocument(url=url, final_url=final_url or url)

    if not html:
        return document

    soup = BeautifulSoup(html, 'html.parser')

    # Meta tags live in <head>, read them before stripping <header> etc.
    document.meta_description = extract_meta_description(soup)

    _remove_non_content(soup)

    document.title = extract_title(soup)
    document.headings = extract_headings(soup)
    document.images = extract_images(soup)
    document.links = extract_links(soup)

    body_text = extract_body_text(soup)
    document.raw_text_length = len(body_text)
    document.body_text, _ = truncate_text(body_text, max_body_length)

    return document
