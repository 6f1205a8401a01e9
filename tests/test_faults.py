import httpx
import pytest

from parceltrack.errors import AuthenticationFailedError, RateLimitReachedError
from parceltrack.faults import RateLimitPolicy, check_http_status, check_payload_fault

POLICY = RateLimitPolicy(limit=5, period="second", sentinel="api_002")


def _response(status_code):
    request = httpx.Request("GET", "https://carrier.example.com/track")
    return httpx.Response(status_code, request=request, json={})


def test_success_statuses_pass():
    for code in (200, 201, 204):
        check_http_status(_response(code), "Carrier", POLICY)


def test_auth_statuses():
    for code in (401, 403):
        with pytest.raises(AuthenticationFailedError) as excinfo:
            check_http_status(_response(code), "Carrier", POLICY)
        assert excinfo.value.carrier == "Carrier"


def test_rate_limit_status_uses_policy():
    with pytest.raises(RateLimitReachedError) as excinfo:
        check_http_status(_response(429), "Carrier", POLICY)
    assert (excinfo.value.limit, excinfo.value.period) == (5, "second")


def test_other_statuses_raise_httpx_error():
    with pytest.raises(httpx.HTTPStatusError):
        check_http_status(_response(404), "Carrier", POLICY)


def test_payload_sentinel():
    with pytest.raises(RateLimitReachedError):
        check_payload_fault(200, "API_002", "Carrier", POLICY)
    # Other error tokens are left to the mapper
    check_payload_fault(200, "esb-10001", "Carrier", POLICY)
    check_payload_fault(200, None, "Carrier", POLICY)
    check_payload_fault(202, "api_002", "Carrier", POLICY)


def test_payload_check_without_sentinel():
    check_payload_fault(200, "api_002", "Carrier", RateLimitPolicy(limit=1, period="hour"))
