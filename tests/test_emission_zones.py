from __future__ import annotations

from ndwfeeds.decoding.xml_tree import decode_xml
from ndwfeeds.transformers.emission_zones import close_ring, transform_emission_zones


def _zone(name: str, pos_list: str) -> str:
    return (
        "<urbanVehicleAccessRegulation>"
        f"<name><values><value>{name}</value></values></name>"
        "<controlledZoneType>lowEmissionZone</controlledZoneType><status>active</status>"
        "<urlForFurtherInformation>https://example.org/zone</urlForFurtherInformation>"
        "<trafficRegulationOrder><trafficRegulation><condition><conditions>"
        "<locationByOrder><gmlMultiPolygon><gmlPolygon><exterior>"
        f"<posList>{pos_list}</posList>"
        "</exterior></gmlPolygon></gmlMultiPolygon></locationByOrder>"
        "</conditions></condition></trafficRegulation></trafficRegulationOrder>"
        "</urbanVehicleAccessRegulation>"
    )


def _container(*zones: str) -> str:
    return (
        "<messageContainer><payload><controlledZoneTable>"
        + "".join(zones)
        + "</controlledZoneTable></payload></messageContainer>"
    )


def test_ring_is_closed_and_lon_lat_ordered() -> None:
    xml = _container(_zone("Zwolle", "52.50 6.00 52.50 6.10 52.55 6.10"))
    collection = transform_emission_zones(decode_xml(xml))

    assert len(collection) == 1
    feature = collection.to_geojson()["features"][0]
    assert feature["geometry"]["type"] == "Polygon"
    assert feature["geometry"]["coordinates"] == [
        [[6.0, 52.5], [6.1, 52.5], [6.1, 52.55], [6.0, 52.5]]
    ]
    assert feature["properties"] == {
        "name": "Zwolle",
        "type": "lowEmissionZone",
        "status": "active",
        "url": "https://example.org/zone",
    }


def test_zone_is_kept_when_one_vertex_is_inside() -> None:
    xml = _container(
        _zone("Groot", "51.00 4.00 52.50 6.10 51.00 7.00 51.00 4.00"),
        _zone("Elders", "51.00 4.00 51.10 4.10 51.20 4.00"),
        _zone("Te klein", "52.50 6.00 52.50 6.10"),
    )
    collection = transform_emission_zones(decode_xml(xml))
    assert [f.properties["name"] for f in collection.features] == ["Groot"]


def test_close_ring_leaves_closed_rings_alone() -> None:
    ring = [(1.0, 2.0), (3.0, 4.0), (1.0, 2.0)]
    assert close_ring(ring) == ring
