"""
Pytest configuration for curator tests.
"""

import pytest

from curator.services.extractor import ExtractedContent
from curator.services.job_queue import JobQueue
from curator.services.job_store import JobStore
from curator.services.suggestion_cache import SuggestionCache
from curator.tests.fakes import FakeClusterRepository, FakeContentRepository, FakeRedis

# Configure pytest-asyncio
pytest_plugins = ('pytest_asyncio',)


def pytest_configure(config):
    """Configure pytest with asyncio marker."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as an async test."
    )


@pytest.fixture
def fake_redis():
    """Redis double; set `down = True` to simulate an outage."""
    return FakeRedis()


@pytest.fixture
def job_store(fake_redis):
    return JobStore(client=fake_redis)


@pytest.fixture
def job_queue(job_store):
    return JobQueue(job_store, status_ttl=3600, meta_ttl=86400)


@pytest.fixture
def suggestion_cache(job_store):
    return SuggestionCache(job_store, ttl=3600)


@pytest.fixture
def content_repo():
    return FakeContentRepository()


@pytest.fixture
def cluster_repo(content_repo):
    return FakeClusterRepository(content_repo)


@pytest.fixture
def extracted():
    """A successful extraction result."""
    return ExtractedContent(
        title='Rust in the Linux kernel',
        body='Linux maintainers discussed the state of Rust support. ' * 20,
        author='Jane Doe',
        published_date='2024-03-01',
        domain='example.com',
    )
