"""
Error types and helpers for consistent error message extraction.
"""

from __future__ import annotations


class BeaconDecoderError(Exception):
    """Base class for all decoder errors."""


class UrlParseError(BeaconDecoderError, ValueError):
    """The request URL could not be split into scheme, host, path and query."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Cannot parse request URL {url!r}: {reason}")
        self.url = url
        self.reason = reason


class DuplicateProviderError(BeaconDecoderError):
    """A provider with the same id is already registered."""

    def __init__(self, provider_id: str) -> None:
        super().__init__(f"Provider {provider_id!r} is already registered")
        self.provider_id = provider_id


def get_error_message(error: BaseException | object) -> str:
    """
    Safely extract an error message from an unknown error type.

    Falls back to the exception class name when the message is empty.
    """
    if isinstance(error, BaseException):
        return str(error) or type(error).__name__
    return "Unknown error"
