"""Australia Post / StarTrack tracking provider.

Uses the Shipping & Tracking API, which answers one GET per request with a
``tracking_results`` array. The body of a result varies with the product:

- eParcel / AP articles: flat ``status`` on the result
- StarTrack consignments: ``consignment.status`` (no flat status)
- Nested StarTrack items: ``trackable_items[0].items[0].status``

Request-level faults (rate limiting) may arrive as HTTP 429 or as a 200
whose envelope holds ``errors[0].error_code == "API_002"``.

API Documentation: https://developers.auspost.com.au/apis/shipping-and-tracking/reference/track-items
"""

from __future__ import annotations

import base64
import logging
import os
from typing import Any, Dict, Mapping, Optional

import httpx

from ..faults import RateLimitPolicy, check_http_status, check_payload_fault
from ..models import CanonicalStatus, TrackingRecord
from ..normalize import (
    ExtractedTokens,
    LookupTable,
    PayloadLayout,
    ShapeMatcher,
    StatusMapper,
    assemble_record,
    build_events,
    extract_tokens,
)
from .base import ProviderBase

logger = logging.getLogger(__name__)

IDENTIFIER = "auspost"
BASE_URI = "https://digitalapi.auspost.com.au"
TRACK_PATH = "/shipping/v1/track"

# 10 requests per minute per account; API_002 is "Too many requests"
RATE_LIMIT = RateLimitPolicy(limit=10, period="minute", sentinel="api_002")

UNKNOWN_SUMMARY = "An unknown Australia Post status"

# Status path priority: flat shipment, consignment, nested item
LAYOUT = PayloadLayout(
    result_path=("tracking_results", 0),
    shapes=(
        ShapeMatcher("shipment", ("status",)),
        ShapeMatcher("consignment", ("consignment", "status")),
        ShapeMatcher("item", ("trackable_items", 0, "items", 0, "status")),
    ),
    error_paths=(("errors", 0, "code"), ("errors", 0, "error_code")),
    envelope_error_paths=(("errors", 0, "code"), ("errors", 0, "error_code")),
    events_path=("trackable_items", 0, "events"),
    identifier_path=("tracking_id",),
)

STATUS_TABLE = LookupTable(
    {
        "shipment": (
            ("created", CanonicalStatus.PENDING,
             "The item or items in the shipment have been created, but have not been finalised in an order."),
            ("sealed", CanonicalStatus.PENDING,
             "The shipment has been added to an order."),
            ("initiated", CanonicalStatus.PRE_TRANSIT,
             "The item or items in the shipment have been finalised in an order and will be delivered when the parcels are received by Australia Post."),
            ("in transit", CanonicalStatus.IN_TRANSIT,
             "The item or items in the shipment are being delivered."),
            ("delivered", CanonicalStatus.DELIVERED,
             "The item or items in the shipment have been delivered."),
            ("awaiting collection", CanonicalStatus.PRE_TRANSIT,
             "The item or items in the shipment are awaiting collection."),
            ("possible delay", CanonicalStatus.IN_TRANSIT,
             "A delay to the delivery of item or items in the shipment is highly likely. Refer to the Australia Post website or call 13 76 78 (13 POST) for more information."),
            ("unsuccessful pickup", CanonicalStatus.FAILURE,
             "The item or items in the shipment could not be collected by Australia Post for delivery."),
            ("article damaged", CanonicalStatus.IN_TRANSIT,
             "The item or items in the shipment were damaged during delivery."),
            ("cancelled", CanonicalStatus.CANCELLED,
             "Delivery of item or items in the shipment was cancelled."),
            ("held by courier", CanonicalStatus.IN_TRANSIT,
             "The item or items in the shipment have been held by the courier."),
            ("cannot be delivered", CanonicalStatus.FAILURE,
             "The item or items in the shipment cannot be delivered as addressed."),
            ("track items for detailed delivery information", CanonicalStatus.UNKNOWN,
             "A shipment level delivery summary cannot be determined, as the items in the shipment are at differing delivery statuses. Track the individual items in the shipment for detailed delivery information."),
        ),
        "consignment": (
            ("booked in", CanonicalStatus.PRE_TRANSIT,
             "The consignment has been booked in with StarTrack."),
            ("picked up", CanonicalStatus.IN_TRANSIT,
             "The consignment has been picked up by StarTrack."),
            ("in transit", CanonicalStatus.IN_TRANSIT,
             "The freight items in the consignment are in transit."),
            ("on board for delivery", CanonicalStatus.IN_TRANSIT,
             "The freight items in the consignment are on board for delivery."),
            ("partially delivered", CanonicalStatus.IN_TRANSIT,
             "Some freight items in the consignment have been delivered."),
            ("delivered in full", CanonicalStatus.DELIVERED,
             "All freight items in the consignment have been delivered."),
            ("awaiting collection", CanonicalStatus.PRE_TRANSIT,
             "The consignment is awaiting collection."),
            ("cancelled", CanonicalStatus.CANCELLED,
             "The consignment was cancelled."),
        ),
        "item": (
            ("item delivered", CanonicalStatus.DELIVERED,
             "The freight item has been delivered."),
            ("on board for delivery", CanonicalStatus.IN_TRANSIT,
             "The freight item is on board for delivery."),
            ("freight handling", CanonicalStatus.IN_TRANSIT,
             "The freight item is being handled at a StarTrack facility."),
            ("picked up", CanonicalStatus.IN_TRANSIT,
             "The freight item has been picked up by StarTrack."),
        ),
    }
)

ERROR_TABLE = LookupTable(
    {
        "errors": (
            ("esb-10001", CanonicalStatus.NOT_FOUND,
             "Invalid Tracking ID: The requested consignment could not be found."),
            ("esb-10002", CanonicalStatus.NOT_FOUND,
             "Product Not Trackable: The query article or query consignment call identified that the article or consignment respectively is not trackable."),
            ("esb-20010", CanonicalStatus.FAILURE,
             "System Error: An internal technical error occurred."),
            ("esb-20050", CanonicalStatus.FAILURE,
             "System Error: An internal technical error occurred."),
            ("51100", CanonicalStatus.FAILURE,
             "Tracking ID Missing: The request must contain at least one tracking id."),
            ("51101", CanonicalStatus.UNKNOWN,
             "Too many AP tracking IDs: The request must contain 10 or less AP article ids, consignment ids, or barcode ids."),
            ("51102", CanonicalStatus.UNKNOWN,
             "Too many SP tracking IDs: The request must contain 10 or less StarTrack consignment ids."),
            ("51103", CanonicalStatus.UNKNOWN,
             "Tracking IDs Mix of AP and ST: The request must only contain tracking ids for either StarTrack consignment ids or a mix of AP article ids, consignment ids, or barcode ids."),
            ("51104", CanonicalStatus.NOT_FOUND,
             "Invalid Tracking ID: One or more submitted tracking ids could not be found."),
        ),
    }
)

MAPPER = StatusMapper(STATUS_TABLE, ERROR_TABLE, UNKNOWN_SUMMARY)


def normalize_auspost_response(payload: Any, identifier: str) -> TrackingRecord:
    """Normalize a decoded Shipping & Tracking API body into a TrackingRecord.

    Pure: no I/O and no fault checks. Unknown shapes degrade to UNKNOWN.
    """
    return _assemble(extract_tokens(payload, identifier, LAYOUT), payload)


def _assemble(tokens: ExtractedTokens, payload: Any) -> TrackingRecord:
    status, summary = MAPPER.resolve(tokens)
    return assemble_record(
        identifier=tokens.identifier,
        status=status,
        summary=summary,
        events=build_events(tokens.events),
        raw=payload,
    )


class AusPostProvider(ProviderBase):
    """Australia Post adapter: one GET per lookup, normalized result."""

    provider = IDENTIFIER
    display_name = "AusPost"

    def __init__(
        self,
        api_key: str,
        password: str,
        account_number: str,
        *,
        client: Optional[httpx.Client] = None,
        async_client: Optional[httpx.AsyncClient] = None,
        base_url: str = BASE_URI,
    ) -> None:
        self.api_key = api_key
        self.password = password
        self.account_number = account_number
        self.base_url = base_url.rstrip("/")
        self._client = client
        self._async_client = async_client

    @classmethod
    def from_env(cls, **kwargs: Any) -> "AusPostProvider":
        """Build a provider from AUSPOST_* environment variables."""
        kwargs.setdefault("base_url", os.getenv("AUSPOST_BASE_URL") or BASE_URI)
        return cls(
            api_key=cls.ensure_credential("AUSPOST_API_KEY"),
            password=cls.ensure_credential("AUSPOST_PASSWORD"),
            account_number=cls.ensure_credential("AUSPOST_ACCOUNT_NUMBER"),
            **kwargs,
        )

    @property
    def url(self) -> str:
        return f"{self.base_url}{TRACK_PATH}"

    def get_headers(self) -> Dict[str, str]:
        credentials = base64.b64encode(
            f"{self.api_key}:{self.password}".encode("utf-8")
        ).decode("ascii")
        return self.build_headers(
            extra={
                "Authorization": f"Basic {credentials}",
                "Account-Number": self.account_number,
            }
        )

    def build_params(
        self, identifier: str, parameters: Optional[Mapping[str, str]] = None
    ) -> Dict[str, str]:
        params = {"tracking_ids": identifier}
        if parameters:
            params.update(parameters)
        return params

    def find(
        self,
        identifier: str,
        parameters: Optional[Mapping[str, str]] = None,
    ) -> TrackingRecord:
        params = self.build_params(identifier, parameters)
        logger.debug("GET %s tracking_ids=%s", self.url, identifier)
        if self._client is None:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.get(self.url, params=params, headers=self.get_headers())
        else:
            response = self._client.get(self.url, params=params, headers=self.get_headers())
        return self.handle_response(response, identifier)

    async def find_async(
        self,
        identifier: str,
        parameters: Optional[Mapping[str, str]] = None,
    ) -> TrackingRecord:
        params = self.build_params(identifier, parameters)
        logger.debug("GET %s tracking_ids=%s", self.url, identifier)
        if self._async_client is None:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    self.url, params=params, headers=self.get_headers()
                )
        else:
            response = await self._async_client.get(
                self.url, params=params, headers=self.get_headers()
            )
        return self.handle_response(response, identifier)

    def handle_response(self, response: httpx.Response, identifier: str) -> TrackingRecord:
        """Classify faults, then normalize the body."""
        check_http_status(response, self.display_name, RATE_LIMIT)
        payload = self.decode_json(response)
        tokens = extract_tokens(payload, identifier, LAYOUT)
        check_payload_fault(
            response.status_code, tokens.error_token, self.display_name, RATE_LIMIT
        )
        return _assemble(tokens, payload)


def track(identifier: str, **parameters: str) -> TrackingRecord:
    """Look up a shipment using credentials from the environment.

    Requires AUSPOST_API_KEY, AUSPOST_PASSWORD and AUSPOST_ACCOUNT_NUMBER.
    Extra keyword arguments are passed through as query parameters.
    """
    return AusPostProvider.from_env().find(identifier, parameters)


async def track_async(
    identifier: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
    **parameters: str,
) -> TrackingRecord:
    """Async version of track()."""
    provider = AusPostProvider.from_env(async_client=client)
    return await provider.find_async(identifier, parameters)
