"""
URL normalization utilities

Used at intake time to validate saved links and detect duplicate saves.
"""
from urllib.parse import urlparse, urlunparse, parse_qs


# Tracking parameters stripped before comparing URLs
TRACKING_PARAMS = {
    'utm_source', 'utm_medium', 'utm_campaign', 'utm_term', 'utm_content',
    'fbclid', 'gclid', 'msclkid', 'mc_cid', 'mc_eid',
    '_ga', '_gl', 'ref'
}


def is_valid_url(url: str) -> bool:
    """
    Check that a string is an absolute http(s) URL with a host.

    Args:
        url: Candidate URL

    Returns:
        True if the URL can be fetched by the extractor
    """
    if not url or not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    if parsed.scheme not in ('http', 'https'):
        return False
    host = parsed.hostname or ''
    # Require a dotted host or localhost ("http://foo" is almost always a typo)
    return bool(host) and ('.' in host or host == 'localhost')


def normalize_url(url: str) -> str:
    """
    Normalize URL to canonical form for deduplication.

    Removes:
    - www. prefix
    - Trailing slashes (except when a query string is present)
    - URL fragments (#)
    - Common tracking parameters (utm_*, fbclid, etc.)

    Args:
        url: The URL to normalize

    Returns:
        Canonical URL string
    """
    parsed = urlparse(url.strip())

    netloc = parsed.netloc.lower()
    if netloc.startswith('www.'):
        netloc = netloc[4:]

    if parsed.query:
        path = parsed.path
    else:
        path = parsed.path.rstrip('/') if parsed.path != '/' else '/'

    if parsed.query:
        params = parse_qs(parsed.query)
        clean_params = {k: v for k, v in params.items() if k.lower() not in TRACKING_PARAMS}
        query = '&'.join(f"{k}={v[0]}" for k, v in sorted(clean_params.items()))
    else:
        query = ''

    return urlunparse((
        parsed.scheme or 'https',
        netloc,
        path,
        '',  # params
        query,
        ''   # fragment removed
    ))


def extract_domain(url: str) -> str:
    """
    Extract domain from URL, stripping www prefix.

    Args:
        url: The URL to extract domain from

    Returns:
        Domain string (e.g., 'example.com')
    """
    try:
        domain = urlparse(url).netloc.lower()
    except (ValueError, AttributeError):
        return url
    if domain.startswith('www.'):
        domain = domain[4:]
    return domain
