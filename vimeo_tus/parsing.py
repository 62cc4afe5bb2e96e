"""
Helpers for parsing tus header values and upload locations.
"""
from typing import Optional
from urllib.parse import urlsplit, urlunsplit


def _first_value(value: str) -> str:
    # Multi-value headers: only the first element counts.
    return value.split(",", 1)[0]


def parse_offset(value: Optional[str]) -> Optional[int]:
    """Parse an Upload-Offset header value.

    Args:
        value: Raw header value, possibly comma separated

    Returns:
        The first offset as an integer, or None when absent or not numeric
    """
    if not value:
        return None
    try:
        offset = int(_first_value(value).strip())
    except ValueError:
        return None
    return offset if offset >= 0 else None


def parse_url(value: str, base_url: str) -> str:
    """Normalize an upload URL returned by the server.

    Path-only locations inherit host, port and scheme from ``base_url``.

    Args:
        value: URL string from the creation response
        base_url: Endpoint the session was created against

    Returns:
        Absolute upload URL
    """
    parts = urlsplit(_first_value(value).strip())
    base = urlsplit(base_url)

    scheme = parts.scheme or base.scheme
    netloc = parts.netloc or base.netloc
    return urlunsplit((scheme, netloc, parts.path, parts.query, parts.fragment))
