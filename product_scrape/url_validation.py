"""URL checks for product pages and the image references found on them."""

import re
from typing import Iterable, Optional
from urllib.parse import urljoin, urlparse

__all__ = [
    "validate_url",
    "resolve_image_url",
    "is_inline_image",
    "is_safe_url",
    "sanitize_url",
    "URLValidationError",
]


class URLValidationError(Exception):
    """Raised when a URL cannot be scraped safely."""


PAGE_SCHEMES = ("http", "https")

# Schemes that execute or embed content rather than address a page
DANGEROUS_SCHEMES = frozenset({"javascript", "data", "vbscript", "file"})

# Checked against the lowercased URL
_SUSPICIOUS = re.compile(r"\.\./|%2e%2e|<script|javascript:")

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f]|%00")


def sanitize_url(url: str) -> str:
    """Trim a URL and drop control characters and encoded NULs."""
    if not url:
        return ""
    return _CONTROL_CHARS.sub("", url.strip())


def _page_host(url: str) -> str:
    try:
        parsed = urlparse(url)
        host = parsed.hostname
    except ValueError as e:
        raise URLValidationError(f"Failed to parse URL: {e}") from e

    scheme = parsed.scheme.lower()
    if scheme in DANGEROUS_SCHEMES:
        raise URLValidationError(f"Dangerous URL scheme: {scheme}")
    if scheme not in PAGE_SCHEMES:
        raise URLValidationError(f"Invalid URL scheme: {scheme or '(none)'}")
    if not host:
        raise URLValidationError("URL has no domain")
    return host


def validate_url(
    url: str,
    allowed_domains: Optional[Iterable[str]] = None,
    require_https: bool = False,
) -> str:
    """Return the sanitized form of a product page URL.

    Args:
        url: URL submitted for scraping
        allowed_domains: Hosts to accept; any host when omitted
        require_https: Reject plain ``http://`` URLs

    Raises:
        URLValidationError: If the URL is empty, not http(s), has no host,
            is outside ``allowed_domains`` or looks like an injection attempt
    """
    if not isinstance(url, str) or not url.strip():
        raise URLValidationError("URL is empty")

    url = sanitize_url(url)
    host = _page_host(url)

    if require_https and not url.lower().startswith("https://"):
        raise URLValidationError(f"URL must use HTTPS, got: {urlparse(url).scheme}")

    if allowed_domains:
        allowed = {d.lower() for d in allowed_domains}
        if host not in allowed:
            raise URLValidationError(
                f"URL domain '{host}' not in allowed domains: {sorted(allowed)}"
            )

    match = _SUSPICIOUS.search(url.lower())
    if match:
        raise URLValidationError(f"URL contains suspicious pattern: {match.group(0)}")

    return url


def is_safe_url(url: str) -> bool:
    """Boolean form of :func:`validate_url`."""
    try:
        validate_url(url)
    except URLValidationError:
        return False
    return True


def is_inline_image(url: str) -> bool:
    """True for ``data:`` URIs, which embed the image instead of linking it."""
    return sanitize_url(url).lower().startswith("data:")


def resolve_image_url(src: str, base_url: str) -> str:
    """Resolve a possibly relative image ``src`` against the page URL.

    Inline data URIs come back untouched so callers can filter them.
    """
    src = sanitize_url(src)
    if not src or not base_url or is_inline_image(src):
        return src
    return urljoin(base_url, src)
