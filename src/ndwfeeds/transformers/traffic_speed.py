"""Measurement-site reference table and the live traffic speed/flow feed."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Optional

from ndwfeeds.decoding.xml_tree import as_list, attribute, first_path, get_path, text_value
from ndwfeeds.geo.coordinates import Coordinate, coerce_float, resolve_coordinate
from ndwfeeds.geo.features import Feature, FeatureCollection, point_feature
from ndwfeeds.geo.region import BoundingBox, ZWOLLE_BBOX


logger = logging.getLogger(__name__)

MeasurementSites = dict[str, Coordinate]


def build_measurement_sites(tree: dict[str, Any], bbox: Optional[BoundingBox] = None) -> MeasurementSites:
    """Map measurement-site id -> `(lon, lat)` for sites inside the region."""

    box = bbox or ZWOLLE_BBOX
    table = first_path(
        tree,
        "Envelope.Body.d2LogicalModel.payloadPublication.measurementSiteTable",
        "d2LogicalModel.payloadPublication.measurementSiteTable",
    )
    sites: MeasurementSites = {}
    if not isinstance(table, dict):
        return sites
    for record in as_list(table.get("measurementSiteRecord")):
        if not isinstance(record, dict):
            continue
        site_id = attribute(record, "id")
        coord = resolve_coordinate(record.get("measurementSiteLocation"))
        if site_id and coord is not None and box.contains(*coord):
            sites[site_id] = coord
    logger.info("Measurement site table: %s sites in region.", len(sites))
    return sites


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# (basicData xsi:type, raw reading) pairs; the type decides speed vs flow.
Reading = tuple[str, Any]


def _max_speed_and_flow(readings: Iterable[Reading]) -> tuple[Optional[float], Optional[float]]:
    speed: Optional[float] = None
    flow: Optional[float] = None
    # A site may report several lanes / redundant values per cycle; keep the maxima.
    for kind, raw in readings:
        value = coerce_float(raw)
        if value is None:
            continue
        if "TrafficSpeed" in kind and value > 0:
            speed = value if speed is None else max(speed, value)
        elif "TrafficFlow" in kind and value >= 0:
            flow = value if flow is None else max(flow, value)
    return speed, flow


def _tree_readings(measurement: dict[str, Any]) -> Iterator[Reading]:
    for entry in as_list(measurement.get("measuredValue")):
        basic = get_path(entry, "measuredValue.basicData")
        if not isinstance(basic, dict):
            continue
        kind = attribute(basic, "type")
        if "TrafficSpeed" in kind:
            yield kind, get_path(basic, "averageVehicleSpeed.speed")
        elif "TrafficFlow" in kind:
            yield kind, get_path(basic, "vehicleFlow.vehicleFlowRate")


@dataclass
class _SiteCounts:
    unknown_sites: int = 0
    empty: int = 0


def _site_feature(
    site_id: str,
    time_default: str,
    readings: Iterable[Reading],
    sites: MeasurementSites,
    counts: _SiteCounts,
) -> Optional[Feature]:
    coord = sites.get(site_id)
    if coord is None:
        counts.unknown_sites += 1
        return None

    speed, flow = _max_speed_and_flow(readings)
    if speed is None and flow is None:
        counts.empty += 1
        return None

    if flow is not None and flow.is_integer():
        flow = int(flow)
    return point_feature(
        coord,
        {
            "id": site_id,
            "time": time_default,
            "speed_kmh": round_half_up(speed) if speed is not None else None,
            "flow_veh_h": flow,
        },
    )


def _collection(features: list[Feature], counts: _SiteCounts) -> FeatureCollection:
    logger.debug(
        "trafficspeed: kept %s sites, %s unknown site refs, %s without values.",
        len(features),
        counts.unknown_sites,
        counts.empty,
    )
    return FeatureCollection(features=features)


def transform_traffic_speed(tree: dict[str, Any], sites: MeasurementSites) -> FeatureCollection:
    measurements = get_path(tree, "Envelope.Body.d2LogicalModel.payloadPublication.siteMeasurements")

    features = []
    counts = _SiteCounts()
    for measurement in as_list(measurements):
        if not isinstance(measurement, dict):
            continue
        feature = _site_feature(
            attribute(measurement.get("measurementSiteReference"), "id"),
            text_value(measurement.get("measurementTimeDefault")),
            _tree_readings(measurement),
            sites,
            counts,
        )
        if feature is not None:
            features.append(feature)
    return _collection(features, counts)


_SITE_BLOCK_RE = re.compile(
    r"<(?:\w+:)?siteMeasurements\b[^>]*>(.*?)</(?:\w+:)?siteMeasurements\s*>", re.DOTALL
)
_SITE_REF_RE = re.compile(r"<(?:\w+:)?measurementSiteReference\b[^>]*?\sid=\"([^\"]*)\"")
_TIME_RE = re.compile(r"<(?:\w+:)?measurementTimeDefault\b[^>]*>\s*([^<]*?)\s*<")
_BASIC_RE = re.compile(r"<(?:\w+:)?basicData\b([^>]*)>(.*?)</(?:\w+:)?basicData\s*>", re.DOTALL)
_TYPE_RE = re.compile(r"\b(?:\w+:)?type=\"([^\"]*)\"")
_SPEED_RE = re.compile(
    r"<(?:\w+:)?averageVehicleSpeed\b.*?<(?:\w+:)?speed\b[^>]*>\s*([^<]*?)\s*<", re.DOTALL
)
_FLOW_RE = re.compile(r"<(?:\w+:)?vehicleFlowRate\b[^>]*>\s*([^<]*?)\s*<")


def _text_readings(block: str) -> Iterator[Reading]:
    for basic in _BASIC_RE.finditer(block):
        type_match = _TYPE_RE.search(basic.group(1))
        kind = type_match.group(1) if type_match else ""
        if "TrafficSpeed" in kind:
            value = _SPEED_RE.search(basic.group(2))
        elif "TrafficFlow" in kind:
            value = _FLOW_RE.search(basic.group(2))
        else:
            continue
        if value is not None:
            yield kind, value.group(1)


def scan_traffic_speed(text: str, sites: MeasurementSites) -> FeatureCollection:
    """Same result as `transform_traffic_speed`, scanned from the raw feed text.

    Reads the `siteMeasurements` blocks directly; no decoded tree is built for the live feed.
    """

    features = []
    counts = _SiteCounts()
    for block in _SITE_BLOCK_RE.finditer(text):
        body = block.group(1)
        ref = _SITE_REF_RE.search(body)
        time_match = _TIME_RE.search(body)
        feature = _site_feature(
            ref.group(1) if ref else "",
            time_match.group(1) if time_match else "",
            _text_readings(body),
            sites,
            counts,
        )
        if feature is not None:
            features.append(feature)
    return _collection(features, counts)
