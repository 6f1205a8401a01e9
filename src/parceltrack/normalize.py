"""Carrier-independent response normalization.

Carrier payloads come in several shapes, so extraction is driven by an
ordered list of :class:`ShapeMatcher` entries and mapping by a
:class:`LookupTable` split into variant groups (one group per payload
shape). A carrier module supplies the shapes and tables; this module
supplies the walking, matching, resolving and assembly.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import (
    Any,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from .models import CanonicalStatus, TrackingEvent, TrackingRecord
from .utils import parse_dt_iso

logger = logging.getLogger(__name__)

UNKNOWN_TOKEN = "unknown"

Path = Tuple[Union[str, int], ...]


def dig(data: Any, path: Path) -> Any:
    """Walk ``data`` along ``path`` (dict keys and list indexes).

    Returns None as soon as a step does not fit the data, so callers never
    need to check intermediate types.
    """
    current = data
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or not -len(current) <= step < len(current):
                return None
            current = current[step]
        else:
            if not isinstance(current, dict):
                return None
            current = current.get(step)
        if current is None:
            return None
    return current


def to_token(value: Any) -> Optional[str]:
    """Lower-cased lookup token for a payload value, or None if unusable.

    Integer codes (some error codes arrive unquoted) are stringified.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        token = value.strip().lower()
        return token or None
    return None


def first_token(data: Any, paths: Iterable[Path], default: str = UNKNOWN_TOKEN) -> str:
    for path in paths:
        token = to_token(dig(data, path))
        if token is not None:
            return token
    return default


@dataclass(frozen=True)
class ShapeMatcher:
    """One known payload shape: where its status token lives.

    ``variant`` names the lookup-table group used for tokens of this shape.
    """

    name: str
    status_path: Path
    variant: Optional[str] = None

    def matches(self, result: Any) -> bool:
        return self.status_token(result) is not None

    def status_token(self, result: Any) -> Optional[str]:
        return to_token(dig(result, self.status_path))

    @property
    def group(self) -> str:
        return self.variant or self.name


@dataclass(frozen=True)
class ExtractedTokens:
    status_token: str
    error_token: str
    identifier: str
    events: List[Dict[str, Any]] = field(default_factory=list)
    shape: Optional[ShapeMatcher] = None

    @property
    def variant(self) -> Optional[str]:
        return self.shape.group if self.shape else None


@dataclass(frozen=True)
class PayloadLayout:
    """Field paths describing a carrier's tracking payload.

    ``result_path`` locates the single-identifier result inside the envelope;
    every other path is relative to that result, except ``envelope_error_paths``
    which are relative to the envelope itself.
    """

    result_path: Path
    shapes: Sequence[ShapeMatcher]
    error_paths: Sequence[Path]
    events_path: Path
    identifier_path: Path
    envelope_error_paths: Sequence[Path] = ()


def extract_tokens(payload: Any, identifier: str, layout: PayloadLayout) -> ExtractedTokens:
    """Derive status/error tokens, events and identifier from a payload.

    Never raises on missing or oddly typed fields; anything absent falls back
    to the ``"unknown"`` token, no events and the requested identifier.
    """
    result = dig(payload, layout.result_path)
    if not isinstance(result, dict):
        result = {}

    status_token = UNKNOWN_TOKEN
    matched: Optional[ShapeMatcher] = None
    for shape in layout.shapes:
        if shape.matches(result):
            status_token, matched = shape.status_token(result), shape
            break

    error_token = first_token(result, layout.error_paths, default="")
    if not error_token:
        error_token = first_token(payload, layout.envelope_error_paths)

    raw_events = dig(result, layout.events_path)
    events: List[Dict[str, Any]] = []
    if isinstance(raw_events, list):
        events = [ev for ev in raw_events if isinstance(ev, dict)]

    found_id = dig(result, layout.identifier_path)
    if isinstance(found_id, (str, int)) and not isinstance(found_id, bool) and str(found_id):
        identifier = str(found_id)

    logger.debug(
        "Extracted tokens shape=%s status=%r error=%r events=%d",
        matched.name if matched else None,
        status_token,
        error_token,
        len(events),
    )
    return ExtractedTokens(
        status_token=status_token,
        error_token=error_token,
        identifier=identifier,
        events=events,
        shape=matched,
    )


TableEntry = Tuple[CanonicalStatus, str]


class LookupTable:
    """Token -> (status, summary) mapping split into ordered variant groups.

    Groups are declared as sequences of ``(token, status, summary)`` rows.
    A token may appear in several groups but only once per group; a repeat
    inside a group raises ``ValueError`` when the table is built.

    Resolution with a variant hint checks that group first, then the other
    groups in declaration order. The first hit wins.
    """

    def __init__(
        self, groups: Mapping[str, Sequence[Tuple[str, CanonicalStatus, str]]]
    ) -> None:
        self._groups: Dict[str, Dict[str, TableEntry]] = {}
        for name, rows in groups.items():
            entries: Dict[str, TableEntry] = {}
            for token, status, summary in rows:
                key = token.strip().lower()
                if key in entries:
                    raise ValueError(f"Duplicate token {key!r} in lookup group {name!r}")
                entries[key] = (status, summary)
            self._groups[name] = entries

    @property
    def group_names(self) -> List[str]:
        return list(self._groups)

    def tokens(self, group: Optional[str] = None) -> List[str]:
        if group is not None:
            return list(self._groups.get(group, {}))
        seen: Dict[str, None] = {}
        for entries in self._groups.values():
            seen.update(dict.fromkeys(entries))
        return list(seen)

    def resolve(self, token: Optional[str], variant: Optional[str] = None) -> Optional[TableEntry]:
        if not token:
            return None
        key = token.strip().lower()
        order = list(self._groups)
        if variant in self._groups:
            order.remove(variant)
            order.insert(0, variant)
        for name in order:
            entry = self._groups[name].get(key)
            if entry is not None:
                return entry
        return None


class StatusMapper:
    """Maps status and error tokens to canonical status and summary.

    An error token that resolves overrides the status-derived result for
    both status and summary; an unknown error token never does.
    """

    def __init__(
        self,
        status_table: LookupTable,
        error_table: LookupTable,
        unknown_summary: str,
    ) -> None:
        self.status_table = status_table
        self.error_table = error_table
        self.unknown_summary = unknown_summary

    def map_status(self, token: str, variant: Optional[str] = None) -> CanonicalStatus:
        entry = self.status_table.resolve(token, variant)
        return entry[0] if entry else CanonicalStatus.UNKNOWN

    def map_status_summary(self, token: str, variant: Optional[str] = None) -> str:
        entry = self.status_table.resolve(token, variant)
        return entry[1] if entry else self.unknown_summary

    def map_error_to_status(self, token: Optional[str]) -> Optional[CanonicalStatus]:
        entry = self.error_table.resolve(token)
        return entry[0] if entry else None

    def map_error_to_summary(self, token: Optional[str]) -> Optional[str]:
        entry = self.error_table.resolve(token)
        return entry[1] if entry else None

    def resolve(self, tokens: ExtractedTokens) -> Tuple[CanonicalStatus, str]:
        status = self.map_status(tokens.status_token, tokens.variant)
        summary = self.map_status_summary(tokens.status_token, tokens.variant)

        error_status = self.map_error_to_status(tokens.error_token)
        if error_status is not None:
            status = error_status
            summary = self.map_error_to_summary(tokens.error_token) or summary
        return status, summary


def build_events(raw_events: Iterable[Mapping[str, Any]]) -> List[TrackingEvent]:
    """Convert carrier event dicts (location/description/date) to models."""
    events: List[TrackingEvent] = []
    for ev in raw_events:
        location = ev.get("location")
        description = ev.get("description")
        events.append(
            TrackingEvent(
                location=location if isinstance(location, str) and location else None,
                description=description if isinstance(description, str) else "",
                timestamp=parse_dt_iso(ev.get("date")),
            )
        )
    return events


def assemble_record(
    identifier: str,
    status: CanonicalStatus,
    summary: str,
    events: Sequence[TrackingEvent],
    raw: Any,
    estimated_delivery: Any = None,
) -> TrackingRecord:
    """Join resolved values into the final record.

    ``raw`` is deep-copied so the record and the caller never share state.
    """
    return TrackingRecord(
        identifier=identifier,
        status=status,
        summary=summary,
        estimated_delivery=estimated_delivery,
        events=list(events),
        raw=copy.deepcopy(raw),
    )
