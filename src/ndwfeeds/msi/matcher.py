"""Join matrix-sign units to DRIP gantry locations by road, carriageway and km marker."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from ndwfeeds.geo.coordinates import Coordinate, coerce_float
from ndwfeeds.geo.features import Feature, FeatureCollection, Point, point_feature
from ndwfeeds.geo.road_codes import normalize_carriageway, normalize_road
from ndwfeeds.msi.events import DisplayState, MsiSign


logger = logging.getLogger(__name__)

# Signs further than this from every gantry on their road are dropped.
# TODO: confirm the 5 km acceptance distance with NDW road-data experts.
MATCH_THRESHOLD_KM = 5.0


@dataclass(frozen=True)
class SignGantry:
    gantry_id: str
    coordinate: Coordinate
    road: Optional[str] = None
    direction: Optional[str] = None
    km: Optional[float] = None
    properties: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class LaneState:
    sign_id: str
    lane: Optional[int]
    state: DisplayState
    speed_limit: Optional[int] = None
    flashing: bool = False
    updated: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "signId": self.sign_id,
            "lane": self.lane,
            "state": self.state.value,
            "speedLimit": self.speed_limit,
            "flashing": self.flashing,
            "updated": self.updated,
        }


def gantries_from_features(collection: FeatureCollection) -> list[SignGantry]:
    """Build gantry records from the DRIP feature collection (point features only)."""

    gantries = []
    for feature in collection.features:
        if not isinstance(feature.geometry, Point):
            continue
        props = feature.properties
        gantries.append(
            SignGantry(
                gantry_id=str(props.get("id") or ""),
                coordinate=feature.geometry.coordinates,
                road=normalize_road(str(props.get("road") or "")),
                direction=normalize_carriageway(props.get("direction")),
                km=coerce_float(props.get("km")),
                properties=props,
            )
        )
    return gantries


def find_gantry(
    sign: MsiSign, gantries: Iterable[SignGantry], threshold_km: float = MATCH_THRESHOLD_KM
) -> Optional[SignGantry]:
    """Closest gantry on the sign's road (and carriageway, when known) within the threshold."""

    if not sign.road or sign.km is None:
        return None
    road = normalize_road(sign.road)
    direction = normalize_carriageway(sign.carriageway)

    best: Optional[SignGantry] = None
    best_distance = 0.0
    for gantry in gantries:
        if gantry.km is None or normalize_road(gantry.road) != road:
            continue
        if direction and normalize_carriageway(gantry.direction) != direction:
            continue
        distance = abs(gantry.km - sign.km)
        if best is None or distance < best_distance:
            best, best_distance = gantry, distance

    if best is None or best_distance >= threshold_km:
        return None
    return best


def _lane_state(sign: MsiSign) -> LaneState:
    return LaneState(
        sign_id=sign.sign_id,
        lane=sign.lane,
        state=sign.state or DisplayState.BLANK,
        speed_limit=sign.speed_limit,
        flashing=bool(sign.flashing),
        updated=sign.updated,
    )


def summarize_lanes(lanes: list[LaneState]) -> dict[str, Any]:
    """Group-level state, worst case first: closed > speed limit > open > end > blank."""

    has_closed = any(lane.state is DisplayState.LANE_CLOSED for lane in lanes)
    limits = [lane.speed_limit for lane in lanes if lane.speed_limit is not None]
    has_open = any(lane.state is DisplayState.LANE_OPEN for lane in lanes)
    has_end = any(lane.state is DisplayState.RESTRICTION_END for lane in lanes)

    if has_closed:
        state = DisplayState.LANE_CLOSED
    elif limits:
        state = DisplayState.SPEED_LIMIT
    elif has_open:
        state = DisplayState.LANE_OPEN
    elif has_end:
        state = DisplayState.RESTRICTION_END
    else:
        state = DisplayState.BLANK

    updated = [lane.updated for lane in lanes if lane.updated]
    return {
        "state": state.value,
        "speedLimit": min(limits) if limits else None,
        "hasClosed": has_closed,
        "hasSpeedLimit": bool(limits),
        "hasOpen": has_open,
        "hasRestrictionEnd": has_end,
        "flashing": any(lane.flashing for lane in lanes),
        "updated": max(updated) if updated else None,
        "laneCount": len(lanes),
        "lanes": [lane.to_dict() for lane in lanes],
    }


def _lane_sort_key(lane: LaneState) -> tuple[int, str]:
    return (lane.lane if lane.lane is not None else 1_000_000, lane.sign_id)


def match_signs_to_gantries(
    signs: Mapping[str, MsiSign],
    gantries: list[SignGantry],
    threshold_km: float = MATCH_THRESHOLD_KM,
) -> FeatureCollection:
    """One feature per gantry with the lanes of every sign matched to it.

    Gantries without matched signs are still emitted as blank with zero lanes.
    """

    # Keyed by object identity: gantry ids are not guaranteed unique or present.
    groups: dict[int, list[LaneState]] = {}
    unmatched = 0
    for sign in signs.values():
        gantry = find_gantry(sign, gantries, threshold_km)
        if gantry is None:
            unmatched += 1
            continue
        groups.setdefault(id(gantry), []).append(_lane_state(sign))

    features: list[Feature] = []
    for gantry in gantries:
        lanes = sorted(groups.get(id(gantry), []), key=_lane_sort_key)
        properties = {
            "id": gantry.gantry_id,
            "name": gantry.properties.get("name", ""),
            "mounting": gantry.properties.get("mounting", ""),
            "road": gantry.road,
            "direction": gantry.direction,
            "km": gantry.km,
            **summarize_lanes(lanes),
        }
        features.append(point_feature(gantry.coordinate, properties))

    logger.debug(
        "msi: %s signs matched to %s gantries, %s unmatched.",
        len(signs) - unmatched,
        len(groups),
        unmatched,
    )
    return FeatureCollection(features=features)
