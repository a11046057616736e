"""
Test: Utilities
===============
"""

from datetime import datetime, timezone

import pytest

from curator.models import ProcessingStatus, can_transition
from curator.utils import (
    extract_domain,
    generate_id,
    get_id_type,
    is_valid_url,
    normalize_url,
    parse_datetime,
    validate_id,
)


class TestUrlUtils:

    @pytest.mark.parametrize('url,expected', [
        ('https://www.Example.com/a/', 'https://example.com/a'),
        ('https://example.com/a?utm_source=feed&b=2&a=1', 'https://example.com/a?a=1&b=2'),
        ('https://example.com/a#top', 'https://example.com/a'),
        ('https://example.com/', 'https://example.com/'),
    ])
    def test_normalize(self, url, expected):
        assert normalize_url(url) == expected

    @pytest.mark.parametrize('url,valid', [
        ('https://example.com', True),
        ('http://localhost:8000/x', True),
        ('example.com', False),
        ('mailto:someone@example.com', False),
        ('https://', False),
    ])
    def test_is_valid_url(self, url, valid):
        assert is_valid_url(url) is valid

    def test_extract_domain(self):
        assert extract_domain('https://www.lwn.net/Articles/1') == 'lwn.net'


class TestIdGenerator:

    def test_prefixes(self):
        assert generate_id('content').startswith('ct_')
        assert generate_id('cluster').startswith('cu_')
        assert get_id_type(generate_id('job')) == 'job'

    def test_validate(self):
        assert validate_id(generate_id('job'))
        assert not validate_id('jb_TOOLONG123')
        assert get_id_type('xx_12345678') is None

    def test_invalid_type(self):
        with pytest.raises(ValueError):
            generate_id('page')


class TestParseDatetime:

    def test_zulu_string(self):
        assert parse_datetime('2024-03-01T12:00:00Z') == datetime(2024, 3, 1, 12, tzinfo=timezone.utc)

    def test_naive_assumed_utc(self):
        assert parse_datetime(datetime(2024, 3, 1)).tzinfo == timezone.utc

    def test_unparseable(self):
        assert parse_datetime('last tuesday') is None
        assert parse_datetime(None) is None


class TestProcessingStatus:

    def test_forward_only(self):
        assert can_transition(ProcessingStatus.PENDING, ProcessingStatus.PROCESSING)
        assert can_transition(ProcessingStatus.PROCESSING, ProcessingStatus.FAILED)
        assert not can_transition(ProcessingStatus.COMPLETED, ProcessingStatus.PENDING)
        assert not can_transition(ProcessingStatus.FAILED, ProcessingStatus.PROCESSING)
