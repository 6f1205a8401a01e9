"""Detection of transport-level faults before status mapping.

A fault means the request itself could not be serviced. That is different
from a NOT_FOUND or FAILURE status, which describe a real answer about a
shipment.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from .errors import AuthenticationFailedError, RateLimitReachedError

logger = logging.getLogger(__name__)

AUTH_FAILURE_STATUSES = frozenset({401, 403})
RATE_LIMIT_STATUS = 429


@dataclass(frozen=True)
class RateLimitPolicy:
    """Carrier rate limit and the error token it uses to report it in-body."""

    limit: int
    period: str
    sentinel: Optional[str] = None

    def error(self, carrier: str) -> RateLimitReachedError:
        return RateLimitReachedError(carrier, self.limit, self.period)


def check_http_status(response: httpx.Response, carrier: str, policy: RateLimitPolicy) -> None:
    """Raise for faults signalled by the HTTP status code.

    401/403 and 429 become carrier faults; any other non-success status is
    raised as ``httpx.HTTPStatusError`` without interpretation.
    """
    code = response.status_code
    if code in AUTH_FAILURE_STATUSES:
        logger.warning("%s rejected credentials (HTTP %s)", carrier, code)
        raise AuthenticationFailedError(carrier)
    if code == RATE_LIMIT_STATUS:
        logger.warning("%s rate limit reached (HTTP 429)", carrier)
        raise policy.error(carrier)
    response.raise_for_status()


def check_payload_fault(
    status_code: int, error_token: Optional[str], carrier: str, policy: RateLimitPolicy
) -> None:
    """Raise when a 200 response carries the carrier's rate-limit sentinel.

    Only the sentinel is treated as a fault here; every other error token is
    left to the status mapper.
    """
    if (
        status_code == 200
        and policy.sentinel is not None
        and error_token is not None
        and error_token.lower() == policy.sentinel.lower()
    ):
        logger.warning("%s reported rate limiting inside a 200 response", carrier)
        raise policy.error(carrier)
