from __future__ import annotations

from typing import Callable, Optional

import httpx
import pytest

from ndw_samples import (
    INCIDENTS_V3_XML,
    MEASUREMENT_TABLE_XML,
    MSI_XML,
    TRAFFIC_SPEED_XML,
    VMS_TABLE_XML,
    gz,
)
from ndwfeeds.ingestion.ndw_client import NdwClient
from ndwfeeds.service import DatasetService
from ndwfeeds.settings import AppConfig


@pytest.fixture
def test_config(tmp_path) -> AppConfig:
    base = AppConfig()
    return base.model_copy(
        update={"ndw": base.ndw.model_copy(update={"base_url": "https://ndw.test"})}
    ).resolve_paths(root=tmp_path)


@pytest.fixture
def feeds() -> dict[str, bytes]:
    """Upstream files keyed by request path; edit per test."""

    return {
        "/incidents.xml.gz": gz(INCIDENTS_V3_XML),
        "/LocatietabelDRIPS.xml.gz": gz(VMS_TABLE_XML),
        "/Matrixsignaalinformatie.xml.gz": gz(MSI_XML),
        "/measurement.xml.gz": gz(MEASUREMENT_TABLE_XML),
        "/trafficspeed.xml.gz": gz(TRAFFIC_SPEED_XML),
    }


@pytest.fixture
def requested() -> list[str]:
    return []


@pytest.fixture
def make_service(
    test_config: AppConfig, feeds: dict[str, bytes], requested: list[str]
) -> Callable[..., DatasetService]:
    def factory(status_overrides: Optional[dict[str, int]] = None) -> DatasetService:
        overrides = status_overrides or {}

        def handler(request: httpx.Request) -> httpx.Response:
            path = request.url.path
            requested.append(path)
            if path in overrides:
                return httpx.Response(status_code=overrides[path])
            body = feeds.get(path)
            if body is None:
                return httpx.Response(status_code=404)
            return httpx.Response(status_code=200, content=body)

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return DatasetService(test_config, NdwClient(test_config, http_client=http_client))

    return factory
