import json
import logging

import httpx
import pytest

from parceltrack.cli import main, parse_params
from parceltrack.errors import RateLimitReachedError
from parceltrack.providers import ProviderRegistry
from parceltrack.providers.auspost import AusPostProvider

DELIVERED = {
    "tracking_results": [
        {
            "tracking_id": "7XX1000634011427",
            "status": "Delivered",
            "trackable_items": [
                {
                    "events": [
                        {
                            "location": "ALEXANDRIA NSW",
                            "description": "Delivered",
                            "date": "2014-05-30T14:43:09+10:00",
                        }
                    ]
                }
            ],
        }
    ]
}


def _registry(status_code, body, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=body)

    registry = ProviderRegistry()
    registry.register(
        "auspost",
        lambda: AusPostProvider(
            api_key="k",
            password="p",
            account_number="a",
            client=httpx.Client(transport=httpx.MockTransport(handler)),
        ),
    )
    return registry


def test_parse_params():
    assert parse_params(["a=1", "b = two"]) == {"a": "1", "b": "two"}


def test_cli_providers(capsys):
    assert main(["providers"], registry=_registry(200, {})) == 0
    assert capsys.readouterr().out.strip() == "auspost"


def test_cli_track_human(capsys):
    seen = []
    code = main(["track", "auspost", "7XX1000634011427", "-p", "expand=events"], registry=_registry(200, DELIVERED, seen))
    out = capsys.readouterr().out
    assert code == 0
    assert "Status: Delivered" in out
    assert "Location: ALEXANDRIA NSW" in out
    assert seen[0].url.params["expand"] == "events"


def test_cli_track_json(capsys):
    code = main(["track", "auspost", "7XX1000634011427", "--json"], registry=_registry(200, DELIVERED))
    payload = json.loads(capsys.readouterr().out)
    assert code == 0
    assert payload["status"] == "delivered"
    assert "raw" not in payload


def test_cli_track_fault_prints_error(capsys):
    code = main(["track", "auspost", "X"], registry=_registry(429, {}))
    err = capsys.readouterr().err
    assert code == 1
    assert "10 requests per minute" in err


def test_cli_track_strict_reraises():
    with pytest.raises(RateLimitReachedError):
        main(["track", "auspost", "X", "--strict"], registry=_registry(429, {}))


def test_cli_track_bad_param_is_usage_error(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["track", "auspost", "X", "-p", "novalue"], registry=_registry(200, DELIVERED))
    assert excinfo.value.code == 2
    assert "Expected key=value" in capsys.readouterr().err


def test_cli_verbose_sets_package_log_level():
    package_logger = logging.getLogger("parceltrack")
    previous = package_logger.level
    try:
        main(["-v", "providers"], registry=_registry(200, {}))
        assert package_logger.level == logging.DEBUG
        main(["providers"], registry=_registry(200, {}))
        assert package_logger.level == logging.WARNING
    finally:
        package_logger.setLevel(previous)


def test_cli_track_json_with_raw(capsys):
    code = main(["track", "auspost", "7XX1000634011427", "--json", "--raw"], registry=_registry(200, DELIVERED))
    payload = json.loads(capsys.readouterr().out)
    assert code == 0
    assert payload["raw"] == DELIVERED


def test_cli_track_without_events(capsys):
    body = {"tracking_results": [{"tracking_id": "X1", "status": "Initiated"}]}
    assert main(["track", "auspost", "X1"], registry=_registry(200, body)) == 0
    out = capsys.readouterr().out
    assert "Status: Pre Transit" in out
    assert "No tracking events" in out


def test_cli_logger_follows_module_name():
    from parceltrack import cli

    assert cli.logger.name == "parceltrack.cli"
