from __future__ import annotations

import math

from ndwfeeds.geo.coordinates import coerce_float, parse_pos_list, resolve_coordinate


def test_coerce_float_rejects_missing_and_malformed() -> None:
    assert coerce_float("52.5") == 52.5
    assert coerce_float({"#text": "6.1"}) == 6.1
    assert coerce_float(None) is None
    assert coerce_float("") is None
    assert coerce_float("abc") is None
    assert coerce_float(True) is None
    assert coerce_float(math.nan) is None


def test_display_location_wins_over_point_coordinates() -> None:
    location = {
        "locationForDisplay": {"latitude": "52.5", "longitude": "6.1"},
        "pointByCoordinates": {"pointCoordinates": {"latitude": "1", "longitude": "2"}},
    }
    assert resolve_coordinate(location) == (6.1, 52.5)


def test_point_by_coordinates_under_group_of_locations() -> None:
    location = {
        "groupOfLocations": {
            "pointByCoordinates": {"pointCoordinates": {"latitude": "52.4", "longitude": "6.0"}}
        }
    }
    assert resolve_coordinate(location) == (6.0, 52.4)


def test_referenced_display_and_bare_lat_lon() -> None:
    referenced = {"locationReference": {"locationForDisplay": {"latitude": "52.6", "longitude": "5.9"}}}
    assert resolve_coordinate(referenced) == (5.9, 52.6)
    assert resolve_coordinate({"latitude": "52.45", "longitude": "6.2"}) == (6.2, 52.45)


def test_line_string_midpoint() -> None:
    location = {
        "locationContainedInItinerary": [
            {"location": {"gmlLineString": {"posList": "52.1 6.1 52.2 6.2 52.3 6.3 52.4 6.4"}}}
        ]
    }
    # 8 numbers -> middle pair starts at index 4.
    assert resolve_coordinate(location) == (6.3, 52.3)


def test_unresolvable_location_is_none() -> None:
    assert resolve_coordinate({"latitude": "52.5"}) is None
    assert resolve_coordinate({"locationForDisplay": {"latitude": "x", "longitude": "6"}}) is None
    assert resolve_coordinate("not a node") is None


def test_parse_pos_list_swaps_to_lon_lat_and_skips_bad_pairs() -> None:
    assert parse_pos_list("52.5 6.0 bad 6.1 52.6 6.2 52.7") == [(6.0, 52.5), (6.2, 52.6)]
    assert parse_pos_list(None) == []
