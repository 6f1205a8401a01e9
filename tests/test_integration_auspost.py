import os
import pytest
import httpx
from dotenv import load_dotenv

from parceltrack.errors import RateLimitReachedError
from parceltrack.models import CanonicalStatus, TrackingRecord
from parceltrack.providers import auspost

# Load variables from .env if present
load_dotenv()


@pytest.mark.integration
def test_auspost_integration_normalized_response():
    if not os.getenv("AUSPOST_API_KEY"):
        pytest.skip("AUSPOST_API_KEY not set; skipping AusPost integration test")

    tracking_id = os.getenv("AUSPOST_TRACKING_ID", "7XX1000634011427")

    try:
        record = auspost.track(tracking_id)
    except RateLimitReachedError as exc:
        pytest.skip(str(exc))
    except httpx.HTTPStatusError as exc:
        pytest.skip(f"AusPost responded with {exc.response.status_code}; skipping model assertions")

    assert isinstance(record, TrackingRecord)
    assert isinstance(record.status, CanonicalStatus)
    assert isinstance(record.identifier, str)
    assert isinstance(record.raw, dict)
    for ev in record.events:
        assert isinstance(ev.description, str)
