"""
Datetime helpers for values coming from extractors, Redis and PostgreSQL
"""
from datetime import datetime, timezone
from typing import Optional
import logging

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Timezone-aware current UTC time"""
    return datetime.now(timezone.utc)


def parse_datetime(value) -> Optional[datetime]:
    """
    Convert an extractor/store value to a timezone-aware datetime

    Handles:
    - None / empty string -> None
    - datetime -> returned as-is (naive values are assumed UTC)
    - ISO 8601 string (with 'Z' suffix or offset) -> parsed
    - Anything else -> None with a warning

    Args:
        value: datetime, string, or None

    Returns:
        datetime or None
    """
    if value is None or value == '':
        return None

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
        except ValueError as e:
            logger.warning(f"Failed to parse datetime string '{value}': {e}")
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)

    logger.warning(f"Cannot convert {type(value)} to datetime: {value}")
    return None
