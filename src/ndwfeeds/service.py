"""Dataset registry and refresh orchestration.

`DatasetService.get(name)` is the single entry point: it serves a cached FeatureCollection
while the dataset's TTL has not expired, otherwise fetches the dataset's feed(s), decodes and
transforms them, and caches the result. Datasets built from two feeds fetch both concurrently.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from ndwfeeds.decoding.xml_tree import decode_xml
from ndwfeeds.geo.features import FeatureCollection
from ndwfeeds.geo.region import BoundingBox
from ndwfeeds.ingestion.errors import UnknownDatasetError
from ndwfeeds.ingestion.ndw_client import NdwClient
from ndwfeeds.msi.events import extract_msi_signs
from ndwfeeds.msi.matcher import gantries_from_features, match_signs_to_gantries
from ndwfeeds.settings import AppConfig, get_config
from ndwfeeds.transformers.emission_zones import transform_emission_zones
from ndwfeeds.transformers.situations import transform_situations
from ndwfeeds.transformers.traffic_speed import (
    MeasurementSites,
    build_measurement_sites,
    scan_traffic_speed,
)
from ndwfeeds.transformers.truck_parking import build_truck_parking_table, transform_truck_parking_status
from ndwfeeds.transformers.vms import transform_vms_table
from ndwfeeds.utils.cache import TtlCache


logger = logging.getLogger(__name__)

SITUATION_DATASETS = ("incidents", "actueel", "srti", "brugopeningen", "maxsnelheden")
MEASUREMENT_SITES_KEY = "measurement_sites"


@dataclass(frozen=True)
class DatasetResult:
    name: str
    collection: FeatureCollection
    ttl_seconds: int
    cache_hit: bool

    @property
    def cache_control(self) -> str:
        return f"public, s-maxage={self.ttl_seconds}"


Loader = Callable[[list[str]], Awaitable[FeatureCollection]]


class DatasetService:
    def __init__(self, config: Optional[AppConfig] = None, client: Optional[NdwClient] = None) -> None:
        self.config = config or get_config()
        self.client = client or NdwClient(self.config)
        self.bbox = BoundingBox.from_config(self.config)
        self._cache: TtlCache[FeatureCollection] = TtlCache(enabled=self.config.cache.enabled)
        self._reference_cache: TtlCache[MeasurementSites] = TtlCache(enabled=self.config.cache.enabled)

        self._loaders: dict[str, Loader] = {name: self._load_situations(name) for name in SITUATION_DATASETS}
        self._loaders.update(
            {
                "emissiezones": self._load_emission_zones,
                "drips": self._load_drips,
                "msi": self._load_msi,
                "truckparking": self._load_truck_parking,
                "trafficspeed": self._load_traffic_speed,
            }
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    def available(self) -> list[str]:
        return [name for name in self.config.ndw.datasets if name in self._loaders]

    def ttl_for(self, name: str) -> int:
        return self.config.cache.ttl_for(name)

    def _feed_paths(self, name: str) -> list[str]:
        paths = self.config.ndw.datasets.get(name)
        if paths is None or name not in self._loaders:
            raise UnknownDatasetError(name, self.available())
        return [paths] if isinstance(paths, str) else list(paths)

    async def get(self, name: str) -> DatasetResult:
        paths = self._feed_paths(name)
        ttl = self.ttl_for(name)
        loader = self._loaders[name]
        collection, hit = await self._cache.get_or_load(name, ttl, lambda: loader(paths))
        if not hit:
            logger.info("Refreshed %s: %s features.", name, len(collection.features))
        return DatasetResult(name=name, collection=collection, ttl_seconds=ttl, cache_hit=hit)

    def clear(self) -> None:
        self._cache.clear()
        self._reference_cache.clear()

    async def _decoded(self, path: str) -> dict[str, Any]:
        return decode_xml(await self.client.fetch(path))

    def _load_situations(self, dataset: str) -> Loader:
        async def load(paths: list[str]) -> FeatureCollection:
            return transform_situations(await self._decoded(paths[0]), dataset, self.bbox)

        return load

    async def _load_emission_zones(self, paths: list[str]) -> FeatureCollection:
        return transform_emission_zones(await self._decoded(paths[0]), self.bbox)

    async def _load_drips(self, paths: list[str]) -> FeatureCollection:
        return transform_vms_table(await self._decoded(paths[0]), self.bbox)

    async def _load_msi(self, paths: list[str]) -> FeatureCollection:
        drips_path, msi_path = paths
        drips_tree, msi_text = await asyncio.gather(
            self._decoded(drips_path), self.client.fetch_text(msi_path)
        )
        gantries = gantries_from_features(transform_vms_table(drips_tree, self.bbox))
        signs = extract_msi_signs(msi_text)
        return match_signs_to_gantries(signs, gantries, self.config.msi.match_threshold_km)

    async def _load_truck_parking(self, paths: list[str]) -> FeatureCollection:
        table_path, status_path = paths
        table_tree, status_tree = await asyncio.gather(
            self._decoded(table_path), self._decoded(status_path)
        )
        table = build_truck_parking_table(table_tree)
        return transform_truck_parking_status(status_tree, table, self.bbox)

    async def measurement_sites(self, path: str) -> MeasurementSites:
        """Site table, cached separately for the (much longer) reference TTL."""

        async def load() -> MeasurementSites:
            return build_measurement_sites(await self._decoded(path), self.bbox)

        sites, _ = await self._reference_cache.get_or_load(
            MEASUREMENT_SITES_KEY, self.config.cache.reference_ttl_seconds, load
        )
        return sites

    async def _load_traffic_speed(self, paths: list[str]) -> FeatureCollection:
        sites_path, speed_path = paths
        sites, speed_text = await asyncio.gather(
            self.measurement_sites(sites_path), self.client.fetch_text(speed_path)
        )
        return scan_traffic_speed(speed_text, sites)

