from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional

import httpx

from ..errors import MissingCredentialsError, ProviderParseError
from ..models import TrackingRecord


class ProviderBase(ABC):
    """
    Minimal base class for carrier tracking adapters.

    Subclasses implement find/find_async and can use the helpers below to
    standardize headers, credentials and JSON decoding.
    """

    # Machine-readable provider key (e.g., "auspost"). Override in subclass.
    provider: str = "unknown"
    # Label used in fault messages (e.g., "AusPost").
    display_name: str = "Unknown"

    # Shared defaults
    timeout: float = 20.0
    user_agent: str = "parceltrack/0.1 (+https://example.com)"

    # --- Core contract ---
    @abstractmethod
    def find(
        self,
        identifier: str,
        parameters: Optional[Mapping[str, str]] = None,
    ) -> TrackingRecord:
        """Fetch and normalize tracking details (synchronous)."""
        raise NotImplementedError

    @abstractmethod
    async def find_async(
        self,
        identifier: str,
        parameters: Optional[Mapping[str, str]] = None,
    ) -> TrackingRecord:
        """Fetch and normalize tracking details (asynchronous)."""
        raise NotImplementedError

    # --- Helpers ---
    def build_headers(
        self,
        *,
        accept: str = "application/json",
        extra: Optional[Dict[str, str]] = None,
    ) -> Dict[str, str]:
        """Construct default headers with optional extra fields."""
        headers = {"User-Agent": self.user_agent, "Accept": accept}
        if extra:
            headers.update(extra)
        return headers

    def decode_json(self, response: httpx.Response) -> Any:
        """Decode a response body, raising ProviderParseError if it is not JSON.

        An empty body decodes to an empty dict.
        """
        if not response.content.strip():
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderParseError(
                f"{self.display_name} returned a non-JSON body (HTTP {response.status_code})"
            ) from exc

    @staticmethod
    def ensure_credential(env_var: str) -> str:
        """Fetch a required credential from environment or raise a helpful error."""
        val = os.getenv(env_var)
        if not val:
            raise MissingCredentialsError(
                f"{env_var} is not set. Add it to your environment or .env file."
            )
        return val
