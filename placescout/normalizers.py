"""Utility helpers for normalising and validating scraped text values."""

from __future__ import annotations

import re
from urllib.parse import unquote, urljoin, urlparse

import placescout.selectors as selectors

NOT_AVAILABLE = "N/A"
PLATFORM_DOMAIN = "google.com"
PLATFORM_BASE_URL = "https://www.google.com"

_DIGITS = re.compile(r"\d+")
_REDIRECT_TARGET = re.compile(r"url\?q=([^&]+)")


def clean_text(text: str | None) -> str:
    """Trim and collapse internal whitespace; ``None`` becomes an empty string."""

    if not text:
        return ""
    return " ".join(text.split())


def parse_locality(address: str) -> str:
    """Return the locality component of a comma-separated postal address.

    The locality is the second-to-last component with digit runs removed, so
    ``"123 Main St, New York, NY 10001"`` yields ``"New York"``. Addresses with fewer
    than two components are returned unchanged.
    """

    parts = [part.strip() for part in address.split(",")]
    if len(parts) < 2:
        return address
    return clean_text(_DIGITS.sub("", parts[-2]))


def extract_actual_url(url: str) -> str:
    """Unwrap a ``.../url?q=<encoded>`` redirect link; other URLs pass through."""

    if "url?q=" in url:
        match = _REDIRECT_TARGET.search(url)
        if match:
            return unquote(match.group(1))
    return url


def is_valid_website(url: str | None) -> bool:
    """True when *url* is an absolute http(s) URL with a host."""

    if not url:
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in {"http", "https"} and bool(parsed.hostname)


def is_platform_url(url: str | None, domain: str = PLATFORM_DOMAIN) -> bool:
    """True when the hostname of *url* is *domain* or one of its subdomains."""

    if not url:
        return False
    try:
        hostname = (urlparse(url).hostname or "").lower()
    except ValueError:
        return False
    return hostname == domain or hostname.endswith(f".{domain}")


def is_plausible_website(url: str | None) -> bool:
    return is_valid_website(url) and not is_platform_url(url)


def is_plausible_name(text: str | None) -> bool:
    return bool(clean_text(text))


def is_plausible_category(text: str | None) -> bool:
    """Category text from a dedicated element: short and not a separator artifact."""

    if not text:
        return False
    if len(text) >= 100:
        return False
    return not any(separator in text for separator in selectors.CATEGORY_SEPARATORS)


def is_scanned_category(text: str | None) -> bool:
    """Category guessed from a page-wide button scan.

    Only short, digit-free labels that are not known action labels qualify.
    """

    if not text:
        return False
    if not 2 < len(text) < 50:
        return False
    if _DIGITS.search(text):
        return False
    return not any(phrase in text for phrase in selectors.CATEGORY_EXCLUDED_PHRASES)


def resolve_identifier(identifier: str, base_url: str = PLATFORM_BASE_URL) -> str:
    """Return an absolute URL for a listing identifier (href or path)."""

    if identifier.startswith("http"):
        return identifier
    return urljoin(base_url, identifier)


__all__ = [
    "NOT_AVAILABLE",
    "clean_text",
    "extract_actual_url",
    "is_platform_url",
    "is_plausible_category",
    "is_plausible_name",
    "is_plausible_website",
    "is_scanned_category",
    "is_valid_website",
    "parse_locality",
    "resolve_identifier",
]
