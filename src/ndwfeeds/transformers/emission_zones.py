from __future__ import annotations

import logging
from typing import Any, Iterator, Optional

from ndwfeeds.decoding.xml_tree import as_list, first_path, get_path, text_value
from ndwfeeds.geo.coordinates import Coordinate, parse_pos_list
from ndwfeeds.geo.features import FeatureCollection, polygon_feature
from ndwfeeds.geo.region import BoundingBox, ZWOLLE_BBOX


logger = logging.getLogger(__name__)

MIN_RING_VERTICES = 3


def close_ring(coords: list[Coordinate]) -> list[Coordinate]:
    """Return the ring with the first vertex appended when first and last differ."""

    if coords and coords[0] != coords[-1]:
        return [*coords, coords[0]]
    return list(coords)


def _pos_lists(zone: dict[str, Any]) -> Iterator[Any]:
    regulations = get_path(zone, "trafficRegulationOrder.trafficRegulation")
    for regulation in as_list(regulations):
        for condition in as_list(get_path(regulation, "condition.conditions")):
            location = get_path(condition, "locationByOrder")
            pos_list = first_path(
                location,
                "gmlMultiPolygon.gmlPolygon.exterior.posList",
                "gmlPolygon.exterior.posList",
            )
            if pos_list is not None:
                yield pos_list


def transform_emission_zones(
    tree: dict[str, Any], bbox: Optional[BoundingBox] = None
) -> FeatureCollection:
    box = bbox or ZWOLLE_BBOX
    zones = get_path(tree, "messageContainer.payload.controlledZoneTable.urbanVehicleAccessRegulation")

    features = []
    for zone in as_list(zones):
        if not isinstance(zone, dict):
            continue
        for pos_list in _pos_lists(zone):
            coords = parse_pos_list(pos_list)
            if len(coords) < MIN_RING_VERTICES:
                continue
            # Large regional zones only need to overlap the area, not sit inside it.
            if not box.touches_any(coords):
                continue
            properties = {
                "name": text_value(first_path(zone, "name.values.value", "name.value")),
                "type": text_value(zone.get("controlledZoneType")),
                "status": text_value(zone.get("status")),
                "url": text_value(zone.get("urlForFurtherInformation")),
            }
            features.append(polygon_feature(close_ring(coords), properties))

    logger.debug("emissiezones: kept %s polygons.", len(features))
    return FeatureCollection(features=features)
