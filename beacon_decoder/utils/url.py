"""
URL utility functions for beacon decoding.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib import parse

from beacon_decoder.utils.errors import UrlParseError


@dataclass(frozen=True)
class RequestUrl:
    """A request URL split into the components decoders look at."""

    raw: str
    scheme: str
    hostname: str
    path: str
    query: str

    def query_pairs(self) -> list[tuple[str, str]]:
        """Return the query string as ordered, percent-decoded pairs.

        Repeated names are kept and blank values are preserved.
        """
        return parse.parse_qsl(self.query, keep_blank_values=True)


def parse_request_url(raw_url: str) -> RequestUrl:
    """Split *raw_url* into a ``RequestUrl``.

    Raises:
        UrlParseError: If the URL has no scheme or host, or
            ``urllib`` rejects it outright.
    """
    if not isinstance(raw_url, str) or not raw_url.strip():
        raise UrlParseError(str(raw_url), "empty URL")

    try:
        parts = parse.urlsplit(raw_url.strip())
        hostname = parts.hostname
    except ValueError as exc:
        raise UrlParseError(raw_url, str(exc)) from exc

    if not parts.scheme:
        raise UrlParseError(raw_url, "missing scheme")
    if not hostname:
        raise UrlParseError(raw_url, "missing host")

    return RequestUrl(
        raw=raw_url,
        scheme=parts.scheme,
        hostname=hostname,
        path=parts.path or "/",
        query=parts.query,
    )


def extract_domain(url: str) -> str:
    """Extract the hostname from a URL string."""
    try:
        parsed = parse.urlparse(url)
        return parsed.hostname or "unknown"
    except ValueError:
        return "unknown"
