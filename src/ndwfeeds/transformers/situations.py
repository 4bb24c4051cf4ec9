"""Situation feeds: incidents, live picture, SRTI safety alerts, bridge openings and
temporary speed measures. Both the DATEX II v2 SOAP and v3 messageContainer layouts."""

from __future__ import annotations

import logging
from typing import Any, Optional

from ndwfeeds.decoding.xml_tree import as_list, attribute, first_path, get_path, text_value
from ndwfeeds.geo.coordinates import resolve_coordinate
from ndwfeeds.geo.features import FeatureCollection, point_feature
from ndwfeeds.geo.region import BoundingBox, ZWOLLE_BBOX


logger = logging.getLogger(__name__)


def _situations(tree: dict[str, Any]) -> list[Any]:
    return as_list(
        first_path(
            tree,
            "Envelope.Body.d2LogicalModel.payloadPublication.situation",
            "messageContainer.payload.situation",
        )
    )


def _plain(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return text_value(value)
    return ""


def situation_properties(situation: dict[str, Any], record: dict[str, Any], dataset: str) -> dict[str, Any]:
    # xsi:type values carry a schema prefix in v3 ("sit:Accident").
    record_type = attribute(record, "type").split(":")[-1]
    validity = record.get("validity")
    status = get_path(validity, "validityStatus")
    if not isinstance(status, str):
        status = ""

    obstruction = _plain(record.get("vehicleObstructionType"))
    return {
        "id": attribute(situation, "id") or attribute(record, "id"),
        "dataset": dataset,
        "type": obstruction or record_type,
        "severity": _plain(situation.get("overallSeverity")) or "unknown",
        "status": status,
        "source": text_value(
            first_path(record, "source.sourceName.values.value", "source.sourceName.value")
        ),
        "comment": text_value(get_path(record, "generalPublicComment.comment.values.value")),
        "start": _plain(get_path(validity, "validityTimeSpecification.overallStartTime")),
        "end": _plain(get_path(validity, "validityTimeSpecification.overallEndTime")),
        "managementType": _plain(record.get("generalNetworkManagementType")),
    }


def transform_situations(
    tree: dict[str, Any], dataset: str, bbox: Optional[BoundingBox] = None
) -> FeatureCollection:
    """One point feature per situation record that resolves to a coordinate inside `bbox`."""

    box = bbox or ZWOLLE_BBOX
    features = []
    dropped = 0
    for situation in _situations(tree):
        if not isinstance(situation, dict):
            continue
        records = as_list(situation.get("situationRecord")) or [situation]
        for record in records:
            if not isinstance(record, dict):
                dropped += 1
                continue
            location = first_path(record, "groupOfLocations", "locationReference") or record
            coord = resolve_coordinate(location)
            if coord is None or not box.contains(*coord):
                dropped += 1
                continue
            features.append(point_feature(coord, situation_properties(situation, record, dataset)))

    logger.debug("%s: kept %s situation records, dropped %s.", dataset, len(features), dropped)
    return FeatureCollection(features=features)
