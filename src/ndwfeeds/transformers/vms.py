"""Variable message sign (DRIP) location table."""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from ndwfeeds.decoding.xml_tree import as_list, attribute, first_path, get_path, text_value
from ndwfeeds.geo.coordinates import coerce_float, resolve_coordinate
from ndwfeeds.geo.features import FeatureCollection, point_feature
from ndwfeeds.geo.region import BoundingBox, ZWOLLE_BBOX
from ndwfeeds.geo.road_codes import normalize_carriageway, normalize_road


logger = logging.getLogger(__name__)

_ROAD_RE = re.compile(r"\b[ANSR]\s?0*\d{1,3}\b", re.IGNORECASE)
_DIRECTION_RE = re.compile(r"\b(?:HR)?(?:L|R|Li|Re)\b", re.IGNORECASE)
_KM_RE = re.compile(r"\b(\d{1,3}[.,]\d{1,3})\b")


def parse_gantry_position(description: str) -> tuple[Optional[str], Optional[str], Optional[float]]:
    """Pull road code, carriageway and km marker out of a DRIP description.

    e.g. "A28 L 87,400 Zwolle-Zuid" -> ("A28", "L", 87.4). Missing parts are None.
    """

    road: Optional[str] = None
    direction: Optional[str] = None
    km: Optional[float] = None

    road_match = _ROAD_RE.search(description)
    if road_match:
        road = normalize_road(road_match.group(0))
        rest = description[road_match.end():]
    else:
        rest = description

    direction_match = _DIRECTION_RE.search(rest)
    if direction_match:
        direction = normalize_carriageway(direction_match.group(0))

    km_match = _KM_RE.search(rest)
    if km_match:
        km = coerce_float(km_match.group(1).replace(",", "."))
    return road, direction, km


def transform_vms_table(tree: dict[str, Any], bbox: Optional[BoundingBox] = None) -> FeatureCollection:
    box = bbox or ZWOLLE_BBOX
    units = get_path(tree, "Envelope.Body.d2LogicalModel.payloadPublication.vmsUnitTable.vmsUnitRecord")

    features = []
    dropped = 0
    for unit in as_list(units):
        if not isinstance(unit, dict):
            continue
        # <vmsRecord vmsIndex="1"><vmsRecord>...payload...</vmsRecord></vmsRecord>
        for outer in as_list(unit.get("vmsRecord")):
            record = outer.get("vmsRecord", outer) if isinstance(outer, dict) else None
            if not isinstance(record, dict) or record.get("vmsLocation") is None:
                dropped += 1
                continue
            coord = resolve_coordinate(record.get("vmsLocation"))
            if coord is None or not box.contains(*coord):
                dropped += 1
                continue

            description = text_value(
                first_path(record, "vmsDescription.values.value", "vmsDescription.value")
            )
            road, direction, km = parse_gantry_position(description)
            features.append(
                point_feature(
                    coord,
                    {
                        "id": attribute(unit, "id"),
                        "name": description,
                        "type": text_value(record.get("vmsType")),
                        "mounting": text_value(record.get("vmsPhysicalMounting")),
                        "road": road,
                        "direction": direction,
                        "km": km,
                    },
                )
            )

    logger.debug("drips: kept %s signs, dropped %s.", len(features), dropped)
    return FeatureCollection(features=features)
