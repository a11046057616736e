"""
Test: Content Extractor
=======================

HTTP responses are served by httpx.MockTransport.
"""

import httpx
import pytest

from curator.errors import ExtractionError
from curator.services import extractor as extractor_module
from curator.services.extractor import ContentExtractor


PARAGRAPH = (
    'Linux kernel maintainers met this week to review the progress of Rust support, '
    'including new driver abstractions and the tooling needed to build them reliably. '
)

ARTICLE_HTML = f"""
<html>
  <head>
    <title>Rust in the Linux kernel</title>
    <meta name="author" content="Jane Doe">
  </head>
  <body>
    <nav>Home | About</nav>
    <article>
      <h1>Rust in the Linux kernel</h1>
      <p>{PARAGRAPH * 3}</p>
      <p>{PARAGRAPH * 3}</p>
    </article>
  </body>
</html>
"""


@pytest.fixture
def serve(monkeypatch):
    """Route every request made by the extractor through a handler."""
    real_client = httpx.AsyncClient

    def install(handler):
        def client_factory(**kwargs):
            return real_client(transport=httpx.MockTransport(handler), **kwargs)
        monkeypatch.setattr(extractor_module.httpx, 'AsyncClient', client_factory)

    return install


class TestContentExtractor:

    @pytest.mark.asyncio
    async def test_extracts_article(self, serve):
        serve(lambda request: httpx.Response(200, text=ARTICLE_HTML))

        result = await ContentExtractor().extract('https://www.lwn.net/Articles/1')

        assert 'Rust support' in result.body
        assert 'Rust' in result.title
        assert result.domain == 'lwn.net'
        assert result.excerpt == result.body[:200]

    @pytest.mark.asyncio
    async def test_http_error_raises(self, serve):
        serve(lambda request: httpx.Response(404, text='not found'))

        with pytest.raises(ExtractionError) as exc_info:
            await ContentExtractor().extract('https://example.com/missing')

        assert exc_info.value.url == 'https://example.com/missing'

    @pytest.mark.asyncio
    async def test_network_error_raises(self, serve):
        def handler(request):
            raise httpx.ConnectError('connection refused', request=request)

        serve(handler)

        with pytest.raises(ExtractionError):
            await ContentExtractor().extract('https://example.com/')

    @pytest.mark.asyncio
    async def test_empty_page_raises(self, serve):
        serve(lambda request: httpx.Response(200, text='<html><body></body></html>'))

        with pytest.raises(ExtractionError):
            await ContentExtractor().extract('https://example.com/empty')
