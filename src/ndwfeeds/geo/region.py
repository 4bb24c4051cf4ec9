from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from ndwfeeds.geo.coordinates import Coordinate
from ndwfeeds.settings import AppConfig, get_config


@dataclass(frozen=True)
class BoundingBox:
    """Closed lat/lon box; edges count as inside."""

    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    @classmethod
    def from_config(cls, config: Optional[AppConfig] = None) -> "BoundingBox":
        region = (config or get_config()).region
        return cls(
            min_lat=region.min_lat,
            max_lat=region.max_lat,
            min_lon=region.min_lon,
            max_lon=region.max_lon,
        )

    def contains(self, lon: float, lat: float) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lon <= lon <= self.max_lon

    def contains_coordinate(self, coord: Optional[Coordinate]) -> bool:
        if coord is None:
            return False
        return self.contains(coord[0], coord[1])

    def touches_any(self, coords: Iterable[Coordinate]) -> bool:
        """True when at least one vertex lies inside; polygons need not be contained."""

        return any(self.contains(lon, lat) for lon, lat in coords)


ZWOLLE_BBOX = BoundingBox(min_lat=52.35, max_lat=52.65, min_lon=5.85, max_lon=6.35)
