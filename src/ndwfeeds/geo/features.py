from __future__ import annotations

from typing import Any, Literal, Sequence, Union

from pydantic import BaseModel, Field

from ndwfeeds.geo.coordinates import Coordinate


class Point(BaseModel):
    type: Literal["Point"] = "Point"
    coordinates: tuple[float, float]


class LineString(BaseModel):
    type: Literal["LineString"] = "LineString"
    coordinates: list[tuple[float, float]]


class Polygon(BaseModel):
    type: Literal["Polygon"] = "Polygon"
    coordinates: list[list[tuple[float, float]]]


Geometry = Union[Point, LineString, Polygon]


class Feature(BaseModel):
    type: Literal["Feature"] = "Feature"
    geometry: Geometry = Field(discriminator="type")
    properties: dict[str, Any] = Field(default_factory=dict)


class FeatureCollection(BaseModel):
    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: list[Feature] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.features)

    def to_geojson(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


def point_feature(coord: Coordinate, properties: dict[str, Any]) -> Feature:
    return Feature(geometry=Point(coordinates=coord), properties=properties)


def polygon_feature(ring: Sequence[Coordinate], properties: dict[str, Any]) -> Feature:
    return Feature(geometry=Polygon(coordinates=[list(ring)]), properties=properties)
