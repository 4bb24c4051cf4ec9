"""Scanner for the matrix-sign (MSI) state feed.

The feed is a flat run of `<event>` blocks without a usable hierarchy: location events carry
road/carriageway/lane/km for a sign, display events carry its current image. Both are keyed by
the sign's unit id, so each block is pattern-matched on its own and the fields are merged per
unit afterwards.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Iterator, Optional

from ndwfeeds.geo.coordinates import coerce_float
from ndwfeeds.geo.road_codes import normalize_carriageway, normalize_road


class DisplayState(str, Enum):
    BLANK = "blank"
    SPEED_LIMIT = "speed_limit"
    LANE_OPEN = "lane_open"
    LANE_CLOSED = "lane_closed"
    LANE_CLOSED_AHEAD = "lane_closed_ahead"
    RESTRICTION_END = "restriction_end"
    UNKNOWN = "unknown"


_DISPLAY_CODES: dict[str, DisplayState] = {
    "blank": DisplayState.BLANK,
    "speedlimit": DisplayState.SPEED_LIMIT,
    "speed_limit": DisplayState.SPEED_LIMIT,
    "lane_open": DisplayState.LANE_OPEN,
    "lane_closed": DisplayState.LANE_CLOSED,
    "lane_closed_ahead": DisplayState.LANE_CLOSED_AHEAD,
    "restriction_end": DisplayState.RESTRICTION_END,
}


@dataclass(frozen=True)
class MsiEvent:
    """One `<event>` block. Only `sign_id` is guaranteed."""

    sign_id: str
    road: Optional[str] = None
    carriageway: Optional[str] = None
    lane: Optional[int] = None
    km: Optional[float] = None
    state: Optional[DisplayState] = None
    speed_limit: Optional[int] = None
    flashing: Optional[bool] = None
    updated: Optional[str] = None


@dataclass(frozen=True)
class MsiSign:
    """Accumulated state of one sign unit across all events in the feed."""

    sign_id: str
    road: Optional[str] = None
    carriageway: Optional[str] = None
    lane: Optional[int] = None
    km: Optional[float] = None
    state: Optional[DisplayState] = None
    speed_limit: Optional[int] = None
    flashing: Optional[bool] = None
    updated: Optional[str] = None

    def merge(self, event: MsiEvent) -> "MsiSign":
        """Overwrite with every field the event reports; absent fields keep their value.

        A new display state replaces the speed limit too, so a sign that went from a limit to
        blank does not keep its old number.
        """

        changes = {
            f.name: getattr(event, f.name)
            for f in fields(event)
            if f.name != "sign_id" and getattr(event, f.name) is not None
        }
        if event.state is not None:
            changes["speed_limit"] = event.speed_limit
        return replace(self, **changes)


_EVENT_RE = re.compile(r"<(?:\w+:)?event\b[^>]*>(.*?)</(?:\w+:)?event\s*>", re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_FIRST_ELEMENT_RE = re.compile(r"<(?:\w+:)?(\w+)\b")


def _element(body: str, name: str) -> Optional[str]:
    """Inner text of the first `<name>` element, "" when self-closing, None when absent."""

    match = re.search(
        rf"<(?:\w+:)?{name}\b[^>]*?(?:/>|>(.*?)</(?:\w+:)?{name}\s*>)", body, re.DOTALL
    )
    if match is None:
        return None
    return (match.group(1) or "").strip()


def _plain_text(fragment: Optional[str]) -> Optional[str]:
    if fragment is None:
        return None
    text = _TAG_RE.sub(" ", fragment).strip()
    return text or None


def _sign_id(body: str) -> Optional[str]:
    block = _element(body, "sign_id")
    if block is not None:
        uuid = _element(block, "uuid")
        return _plain_text(uuid if uuid is not None else block)
    return _plain_text(_element(body, "uuid"))


def _display(body: str) -> tuple[Optional[DisplayState], Optional[int]]:
    block = _element(body, "display")
    if block is None:
        return None, None
    first = _FIRST_ELEMENT_RE.search(block)
    if first is None:
        # A bare payload without a state element says nothing about the image shown.
        return DisplayState.UNKNOWN, None
    code = first.group(1).lower()
    state = _DISPLAY_CODES.get(code, DisplayState.UNKNOWN)
    if state is not DisplayState.SPEED_LIMIT:
        return state, None
    payload = _plain_text(_element(block, first.group(1)))
    value = coerce_float(payload)
    return state, int(value) if value is not None and value > 0 else None


def _flashing(body: str) -> Optional[bool]:
    text = _plain_text(_element(body, "flashing"))
    if text is None:
        return None
    return text.lower() in {"true", "1", "yes"}


def _lane(body: str) -> Optional[int]:
    value = coerce_float(_plain_text(_element(body, "lane")))
    return int(value) if value is not None else None


def _km(body: str) -> Optional[float]:
    text = _plain_text(_element(body, "km"))
    return coerce_float(text.replace(",", ".")) if text else None


def parse_event(body: str) -> Optional[MsiEvent]:
    """Extract one event's fields; None when it carries no unit id."""

    sign_id = _sign_id(body)
    if not sign_id:
        return None
    state, speed_limit = _display(body)
    return MsiEvent(
        sign_id=sign_id,
        road=normalize_road(_plain_text(_element(body, "road"))),
        carriageway=normalize_carriageway(_plain_text(_element(body, "carriageway"))),
        lane=_lane(body),
        km=_km(body),
        state=state,
        speed_limit=speed_limit,
        flashing=_flashing(body),
        updated=_plain_text(_element(body, "ts_state")) or _plain_text(_element(body, "ts_event")),
    )


def iter_msi_events(text: str) -> Iterator[MsiEvent]:
    for match in _EVENT_RE.finditer(text):
        event = parse_event(match.group(1))
        if event is not None:
            yield event


def extract_msi_signs(text: str) -> dict[str, MsiSign]:
    """Fold the event stream into one record per sign unit, in first-seen order."""

    signs: dict[str, MsiSign] = {}
    for event in iter_msi_events(text):
        current = signs.get(event.sign_id) or MsiSign(sign_id=event.sign_id)
        signs[event.sign_id] = current.merge(event)
    return signs
