"""
Content extractor - fetch a URL and pull readable text + metadata

Extraction chain:
1. Trafilatura - clean main-text extraction and metadata
2. BeautifulSoup - article selector fallback (article, [role=main], ...)

Size limits are applied by the enrichment pipeline, not here.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import httpx
import trafilatura
from bs4 import BeautifulSoup

from curator.errors import ExtractionError
from curator.utils.url_utils import extract_domain

logger = logging.getLogger(__name__)

USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
)

ARTICLE_SELECTORS = [
    'article',
    '[role="main"]',
    '.post-content',
    '.article-content',
    '.entry-content',
    'main',
]


@dataclass
class ExtractedContent:
    """Result from content extraction"""
    title: str
    body: str
    author: Optional[str] = None
    published_date: Optional[str] = None
    domain: Optional[str] = None
    excerpt: Optional[str] = None


class ContentExtractor:
    """
    Fetches HTML with httpx and extracts text with trafilatura

    Raises ExtractionError on any network or parse failure.
    """

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout

    async def extract(self, url: str) -> ExtractedContent:
        html = await self._fetch_html(url)
        return await asyncio.to_thread(self._parse, url, html)

    async def _fetch_html(self, url: str) -> str:
        """
        Fetch HTML from URL

        Args:
            url: URL to fetch

        Returns:
            HTML content
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                response = await client.get(url, headers={'User-Agent': USER_AGENT})
                response.raise_for_status()
                return response.text
        except httpx.HTTPError as e:
            raise ExtractionError(url, f"{e.__class__.__name__}: {e}") from e

    def _parse(self, url: str, html: str) -> ExtractedContent:
        if not html or not html.strip():
            raise ExtractionError(url, "empty response body")

        soup = BeautifulSoup(html, 'lxml')
        metadata = trafilatura.extract_metadata(html, default_url=url)

        body = trafilatura.extract(html, url=url, include_comments=False) or ''
        if not body.strip():
            body = self._fallback_body(soup)
        if not body.strip():
            raise ExtractionError(url, "no readable text found")

        title = (metadata.title if metadata and metadata.title else '') or self._fallback_title(soup)
        author = (metadata.author if metadata and metadata.author else None) or self._meta_content(
            soup, {'name': 'author'}
        )
        published = (metadata.date if metadata and metadata.date else None) or self._meta_content(
            soup, {'property': 'article:published_time'}
        ) or self._meta_content(soup, {'name': 'date'})

        logger.info(f"Extracted {len(body)} chars from {url}")
        return ExtractedContent(
            title=title.strip(),
            body=body.strip(),
            author=author,
            published_date=published,
            domain=extract_domain(url),
            excerpt=body.strip()[:200],
        )

    def _fallback_body(self, soup: BeautifulSoup) -> str:
        for selector in ARTICLE_SELECTORS:
            element = soup.select_one(selector)
            if element is not None:
                text = element.get_text(' ', strip=True)
                if text:
                    return text
        return soup.body.get_text(' ', strip=True) if soup.body else ''

    def _fallback_title(self, soup: BeautifulSoup) -> str:
        if soup.title and soup.title.string:
            return soup.title.string
        h1 = soup.find('h1')
        return h1.get_text(strip=True) if h1 else ''

    def _meta_content(self, soup: BeautifulSoup, attrs: dict) -> Optional[str]:
        tag = soup.find('meta', attrs=attrs)
        if tag and tag.get('content'):
            return tag['content'].strip()
        return None
