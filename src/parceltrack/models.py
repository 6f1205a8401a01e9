"""
Carrier-agnostic Pydantic models for tracking results.

Every carrier adapter converts its own payload into these models.
"""

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_serializer


class CanonicalStatus(str, Enum):
    """Canonical shipment status values.

    This is a classification, not a progression: a shipment may go from
    pending straight to cancelled.
    """

    PENDING = "pending"
    PRE_TRANSIT = "pre_transit"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    FAILURE = "failure"
    CANCELLED = "cancelled"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"

    @property
    def description(self) -> str:
        """Human-readable label, e.g. "Not Found"."""
        return self.value.replace("_", " ").title()


class TrackingEvent(BaseModel):
    """A single scan or milestone reported by the carrier."""

    location: Optional[str] = Field(None, description="Where the event occurred")
    description: str = Field(description="Carrier's description of the event")
    timestamp: Optional[datetime] = Field(None, description="When the event occurred")

    @field_serializer("timestamp")
    def _ser_timestamp(self, dt: Optional[datetime]) -> Optional[str]:
        if dt is None:
            return None
        from .utils import serialize_dt

        return serialize_dt(dt)

    model_config = ConfigDict(frozen=True)


class TrackingRecord(BaseModel):
    """Normalized result of a single tracking lookup."""

    identifier: str = Field(description="Tracking identifier as reported by the carrier")
    status: CanonicalStatus = Field(description="Canonical shipment status")
    summary: str = Field(description="Human-readable explanation of the status")
    estimated_delivery: Optional[datetime] = Field(
        None, description="Estimated delivery date"
    )
    events: List[TrackingEvent] = Field(
        default_factory=list, description="Events in the order the carrier returned them"
    )
    # Untouched decoded payload, kept for audit/debugging
    raw: Any = Field(
        default_factory=dict, description="Original decoded carrier payload"
    )

    @field_serializer("estimated_delivery")
    def _ser_estimated(self, dt: Optional[datetime]) -> Optional[str]:
        if dt is None:
            return None
        from .utils import serialize_dt

        return serialize_dt(dt)

    @property
    def has_events(self) -> bool:
        return len(self.events) > 0

    model_config = ConfigDict(frozen=True)
