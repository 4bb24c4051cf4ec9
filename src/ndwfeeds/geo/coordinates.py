from __future__ import annotations

import math
from typing import Any, Callable, Optional

from ndwfeeds.decoding.xml_tree import as_list, first_path, get_path


Coordinate = tuple[float, float]
"""A `(longitude, latitude)` pair in WGS-84 decimal degrees."""


def coerce_float(value: Any) -> Optional[float]:
    """Best-effort float conversion; missing or malformed values stay None (never 0.0)."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, dict):
        value = value.get("#text")
        if value is None:
            return None
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_pos_list(value: Any) -> list[Coordinate]:
    """Parse a GML `posList` ("lat lon lat lon ...") into `(lon, lat)` pairs.

    Pairs with a non-numeric member are skipped; a trailing odd number is ignored.
    """

    if value is None:
        return []
    text = value.get("#text", "") if isinstance(value, dict) else str(value)
    tokens = text.split()
    coords: list[Coordinate] = []
    for i in range(0, len(tokens) - 1, 2):
        lat = coerce_float(tokens[i])
        lon = coerce_float(tokens[i + 1])
        if lat is None or lon is None:
            continue
        coords.append((lon, lat))
    return coords


def _lat_lon(node: Any) -> Optional[Coordinate]:
    if not isinstance(node, dict):
        return None
    lat = coerce_float(node.get("latitude"))
    lon = coerce_float(node.get("longitude"))
    if lat is None or lon is None:
        return None
    return (lon, lat)


def _display_location(loc: dict[str, Any]) -> Optional[Coordinate]:
    return _lat_lon(first_path(loc, "locationForDisplay", "groupOfLocations.locationForDisplay"))


def _point_by_coordinates(loc: dict[str, Any]) -> Optional[Coordinate]:
    # DATEX II v2 nests it directly or under groupOfLocations, v3 under locationReference.
    return _lat_lon(
        first_path(
            loc,
            "pointByCoordinates.pointCoordinates",
            "groupOfLocations.pointByCoordinates.pointCoordinates",
            "locationReference.pointByCoordinates.pointCoordinates",
        )
    )


def _referenced_display_location(loc: dict[str, Any]) -> Optional[Coordinate]:
    return _lat_lon(get_path(loc, "locationReference.locationForDisplay"))


def _bare_lat_lon(loc: dict[str, Any]) -> Optional[Coordinate]:
    return _lat_lon(loc)


def _line_string_midpoint(loc: dict[str, Any]) -> Optional[Coordinate]:
    for item in as_list(loc.get("locationContainedInItinerary")):
        pos_list = get_path(item, "location.gmlLineString.posList")
        if pos_list is None:
            continue
        text = pos_list.get("#text", "") if isinstance(pos_list, dict) else str(pos_list)
        numbers = [coerce_float(token) for token in text.split()]
        if len(numbers) < 2:
            continue
        # Start of the middle [lat, lon] pair of the flat number list.
        mid = (len(numbers) // 4) * 2
        lat, lon = numbers[mid], numbers[mid + 1]
        if lat is None or lon is None:
            continue
        return (lon, lat)
    return None


RESOLVERS: tuple[Callable[[dict[str, Any]], Optional[Coordinate]], ...] = (
    _display_location,
    _point_by_coordinates,
    _referenced_display_location,
    _bare_lat_lon,
    _line_string_midpoint,
)


def resolve_coordinate(location: Any) -> Optional[Coordinate]:
    """Resolve a DATEX II location sub-tree to a single `(lon, lat)`.

    Encodings are tried in a fixed priority order and the first match wins. `None` means
    no usable coordinate; callers drop the record.
    """

    if not isinstance(location, dict):
        return None
    for resolver in RESOLVERS:
        coord = resolver(location)
        if coord is not None:
            return coord
    return None
