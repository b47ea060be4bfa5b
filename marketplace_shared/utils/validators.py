"""
Shared validators for input sanitization and money handling.
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Optional
from urllib.parse import urlparse

from marketplace_shared.config.constants import Limits

# Internal hosts that should never appear in image URLs (SSRF prevention)
BLOCKED_HOSTS = [
    "localhost",
    "127.0.0.1",
    "0.0.0.0",
    "10.",
    "192.168.",
    "169.254.",  # Link-local, cloud metadata
    "::1",
    "metadata.google",
]

BLOCKED_SCHEMES = {"javascript", "data", "file", "ftp", "mailto", "tel"}

CENT = Decimal("0.01")


def validate_image_url(url: Optional[str]) -> Optional[str]:
    """
    Validate and sanitize an image URL.

    Args:
        url: The URL to validate (can be None)

    Returns:
        The validated URL or None if empty

    Raises:
        ValueError: If the URL is invalid or points to an internal host
    """
    if url is None:
        return None

    url = url.strip()
    if not url:
        return None

    parsed = urlparse(url)

    scheme = parsed.scheme.lower()
    if scheme in BLOCKED_SCHEMES:
        raise ValueError(f"URL scheme not allowed: {scheme}")

    if scheme not in ("http", "https"):
        raise ValueError("Only HTTP/HTTPS URLs are allowed")

    host = (parsed.hostname or "").lower()
    if not host:
        raise ValueError("URL has no valid host")

    for blocked in BLOCKED_HOSTS:
        if host == blocked or host.startswith(blocked):
            raise ValueError("Internal URLs are not allowed")

    if len(url) > 2048:
        raise ValueError("URL too long (maximum 2048 characters)")

    return url


def escape_like_pattern(value: str) -> str:
    """
    Escape special characters in LIKE patterns.

    SQL LIKE uses % and _ as wildcards; escaping them keeps a search term
    literal.

    Args:
        value: The search string to escape

    Returns:
        The escaped string, to be used with a backslash escape character
    """
    if not value:
        return value

    value = value.replace("\\", "\\\\")
    value = value.replace("%", "\\%")
    value = value.replace("_", "\\_")
    return value


def sanitize_search_term(term: str | None, max_length: int = Limits.MAX_SEARCH_LENGTH) -> str | None:
    """Trim a search term; blank terms become None."""
    if term is None:
        return None
    term = term.strip()[:max_length]
    return term or None


def validate_quantity(
    quantity: int,
    min_val: int = Limits.MIN_QUANTITY,
    max_val: int = Limits.MAX_QUANTITY,
) -> int:
    """
    Validate quantity is within acceptable range.

    Raises:
        ValueError: If quantity is outside allowed range
    """
    if quantity < min_val:
        raise ValueError(f"Minimum quantity is {min_val}")
    if quantity > max_val:
        raise ValueError(f"Maximum quantity is {max_val}")
    return quantity


# =============================================================================
# Money Conversion
# =============================================================================


def to_decimal(value: Any) -> Decimal:
    """
    Convert a numeric input to a 2-place Decimal for storage.

    Floats go through str() so 12.5 is stored as 12.50, not as its
    binary approximation.

    Raises:
        ValueError: If the value is not numeric
    """
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"Invalid amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_float(value: Any) -> Any:
    """
    Convert a stored decimal (Decimal or numeric string) to float.

    None and non-numeric values pass through untouched so the schema
    validator can report them.
    """
    if value is None:
        return None
    if isinstance(value, (Decimal, str)):
        try:
            return float(value)
        except ValueError:
            return value
    return value
