"""Exceptions raised by carrier adapters.

Transport failures (connection errors, unexpected HTTP statuses) are not
wrapped: the underlying ``httpx`` exception reaches the caller unmodified.
"""

from __future__ import annotations


class ParcelTrackError(RuntimeError):
    """Base class for all parceltrack errors."""


class MissingCredentialsError(ParcelTrackError):
    """Raised when required provider credentials are not configured."""


class ProviderParseError(ParcelTrackError):
    """Raised when a successful provider response body is not JSON."""


class AuthenticationFailedError(ParcelTrackError):
    """The carrier rejected the configured credentials."""

    def __init__(self, carrier: str) -> None:
        self.carrier = carrier
        super().__init__(f"The API authentication failed for the {carrier} driver")


class RateLimitReachedError(ParcelTrackError):
    """The carrier refused the request because its rate limit was hit.

    Callers should back off for ``period`` before retrying.
    """

    def __init__(self, carrier: str, limit: int, period: str) -> None:
        self.carrier = carrier
        self.limit = limit
        self.period = period
        super().__init__(
            f"The API limit of {limit} requests per {period} has been reached "
            f"for the {carrier} driver"
        )
