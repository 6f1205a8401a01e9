"""parceltrack: carrier tracking responses normalized into one record type."""

from .errors import (
    AuthenticationFailedError,
    MissingCredentialsError,
    ParcelTrackError,
    ProviderParseError,
    RateLimitReachedError,
)
from .models import CanonicalStatus, TrackingEvent, TrackingRecord

__version__ = "0.1.0"

__all__ = [
    "AuthenticationFailedError",
    "CanonicalStatus",
    "MissingCredentialsError",
    "ParcelTrackError",
    "ProviderParseError",
    "RateLimitReachedError",
    "TrackingEvent",
    "TrackingRecord",
    "__version__",
]
