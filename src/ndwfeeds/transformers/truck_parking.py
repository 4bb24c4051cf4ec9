"""Truck parking: static table joined with the live status feed by record id."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from ndwfeeds.decoding.xml_tree import as_list, attribute, first_path, get_path, text_value
from ndwfeeds.geo.coordinates import coerce_float
from ndwfeeds.geo.features import FeatureCollection, point_feature
from ndwfeeds.geo.region import BoundingBox, ZWOLLE_BBOX


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TruckParkingSite:
    site_id: str
    lon: float
    lat: float
    name: str
    free_of_charge: Optional[bool] = None


def _as_bool(value: Any) -> Optional[bool]:
    text = text_value(value).strip().lower()
    if text in {"true", "1"}:
        return True
    if text in {"false", "0"}:
        return False
    return None


def _as_number(value: Any) -> Optional[float | int]:
    number = coerce_float(value)
    if number is None:
        return None
    return int(number) if number.is_integer() else number


def build_truck_parking_table(tree: dict[str, Any]) -> dict[str, TruckParkingSite]:
    table = get_path(
        tree,
        "d2LogicalModel.payloadPublication.genericPublicationExtension"
        ".parkingTablePublication.parkingTable",
    )
    sites: dict[str, TruckParkingSite] = {}
    if not isinstance(table, dict):
        return sites
    for record in as_list(table.get("parkingRecord")):
        if not isinstance(record, dict):
            continue
        site_id = attribute(record, "id")
        point = get_path(record, "parkingLocation.pointByCoordinates.pointCoordinates")
        lat = coerce_float(get_path(point, "latitude"))
        lon = coerce_float(get_path(point, "longitude"))
        if not site_id or lat is None or lon is None:
            continue
        sites[site_id] = TruckParkingSite(
            site_id=site_id,
            lon=lon,
            lat=lat,
            name=text_value(first_path(record, "parkingName.values.value", "parkingName.value")),
            free_of_charge=_as_bool(get_path(record, "tariffsAndPayment.freeOfCharge")),
        )
    return sites


def transform_truck_parking_status(
    tree: dict[str, Any],
    table: dict[str, TruckParkingSite],
    bbox: Optional[BoundingBox] = None,
) -> FeatureCollection:
    box = bbox or ZWOLLE_BBOX
    statuses = first_path(
        tree, "payload.parkingRecordStatus", "messageContainer.payload.parkingRecordStatus"
    )

    features = []
    unknown = 0
    for status in as_list(statuses):
        if not isinstance(status, dict):
            continue
        ref_id = attribute(status.get("parkingRecordReference"), "id")
        site = table.get(ref_id)
        if site is None:
            unknown += 1
            continue
        if not box.contains(site.lon, site.lat):
            continue

        occupancy = status.get("parkingOccupancy")
        features.append(
            point_feature(
                (site.lon, site.lat),
                {
                    "id": ref_id,
                    "name": site.name,
                    "status": text_value(status.get("parkingSiteStatus")),
                    "vacant": _as_number(get_path(occupancy, "parkingNumberOfVacantSpaces")),
                    "occupied": _as_number(get_path(occupancy, "parkingNumberOfOccupiedSpaces")),
                    "occupancy_pct": _as_number(get_path(occupancy, "parkingOccupancy")),
                    "freeOfCharge": site.free_of_charge,
                },
            )
        )

    logger.debug("truckparking: kept %s sites, %s unknown references.", len(features), unknown)
    return FeatureCollection(features=features)
