"""
Utility functions
"""
from .datetime_utils import parse_datetime, utcnow
from .id_generator import generate_id, validate_id, get_id_type
from .url_utils import normalize_url, extract_domain, is_valid_url

__all__ = [
    'parse_datetime',
    'utcnow',
    'generate_id',
    'validate_id',
    'get_id_type',
    'normalize_url',
    'extract_domain',
    'is_valid_url',
]
