import argparse
import logging
import sys
from typing import Dict, List, Optional

import httpx
from dotenv import load_dotenv

from .errors import ParcelTrackError
from .models import CanonicalStatus, TrackingRecord
from .providers import ProviderRegistry, default_registry

logger = logging.getLogger(__name__)


def parse_params(pairs: List[str]) -> Dict[str, str]:
    """Turn repeated ``key=value`` arguments into a query parameter dict."""
    params: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"Expected key=value, got {pair!r}")
        params[key.strip()] = value.strip()
    return params


def cmd_track(args: argparse.Namespace, registry: ProviderRegistry) -> int:
    params = parse_params(args.param or [])
    if args.strict:
        # In strict mode, propagate errors
        provider = registry.create(args.carrier)
        record = provider.find(args.code, params)
    else:
        try:
            provider = registry.create(args.carrier)
            record = provider.find(args.code, params)
        except (ParcelTrackError, httpx.HTTPError) as exc:
            logger.debug("Tracking %s with %s failed", args.code, args.carrier, exc_info=True)
            print(f"Error: {exc}", file=sys.stderr)
            return 1
    if args.json:
        print(record.model_dump_json(indent=2, exclude=None if args.raw else {"raw"}))
    else:
        print_human(record, carrier=args.carrier)
    return 0


def cmd_providers(_args: argparse.Namespace, registry: ProviderRegistry) -> int:
    for name in registry.names():
        print(name)
    return 0


def print_human(record: TrackingRecord, *, carrier: Optional[str] = None) -> None:
    if carrier:
        print(f"Carrier: {carrier}")
    print(f"Shipment: {record.identifier}")
    print(f"Status: {record.status.description}")
    print(f"Summary: {record.summary}")
    if record.estimated_delivery:
        print(f"Estimated delivery: {record.estimated_delivery:%Y-%m-%d}")

    if not record.has_events:
        if record.status != CanonicalStatus.NOT_FOUND:
            print("No tracking events")
        return

    print("\nTracking Events:")
    for event in record.events:
        timestamp = event.timestamp.strftime("%Y-%m-%d %H:%M") if event.timestamp else "unknown time"
        print(f"- {timestamp}: {event.description}")
        if event.location:
            print(f"  Location: {event.location}")


def build_parser(registry: ProviderRegistry) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="parceltrack", description="Carrier tracking lookups, normalized."
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command")

    p_track = subparsers.add_parser("track", help="Track a shipment")
    p_track.add_argument("carrier", choices=registry.names(), help="Carrier name")
    p_track.add_argument("code", help="Tracking identifier")
    p_track.add_argument(
        "--param",
        "-p",
        action="append",
        metavar="KEY=VALUE",
        help="Extra query parameter passed to the carrier (repeatable)",
    )
    p_track.add_argument("--json", action="store_true", help="Output the record as JSON")
    p_track.add_argument(
        "--raw",
        action="store_true",
        help="Include the untouched carrier payload in JSON output",
    )
    p_track.add_argument(
        "--strict",
        action="store_true",
        help="Propagate errors instead of printing a one-line message",
    )
    p_track.set_defaults(func=cmd_track)

    p_prov = subparsers.add_parser("providers", help="List supported carriers")
    p_prov.set_defaults(func=cmd_providers)

    return parser


def main(argv: Optional[list[str]] = None, registry: Optional[ProviderRegistry] = None) -> int:
    # Load environment variables from .env if present
    load_dotenv()
    if registry is None:
        registry = default_registry()
    parser = build_parser(registry)
    args = parser.parse_args(argv)
    level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    # basicConfig is a no-op once the root logger has handlers
    logging.getLogger(__package__).setLevel(level)
    if not getattr(args, "command", None):
        parser.print_help()
        return 1
    try:
        return args.func(args, registry)
    except argparse.ArgumentTypeError as exc:
        parser.error(str(exc))


if __name__ == "__main__":
    raise SystemExit(main())
