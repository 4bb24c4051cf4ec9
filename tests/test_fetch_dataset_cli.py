from __future__ import annotations

import importlib.util
import json
from pathlib import Path
from types import ModuleType

import pytest

from ndwfeeds.geo.features import FeatureCollection, point_feature
from ndwfeeds.ingestion.errors import UnknownDatasetError, UpstreamFetchError
from ndwfeeds.service import DatasetResult


SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "fetch_dataset.py"


def _load_script() -> ModuleType:
    spec = importlib.util.spec_from_file_location("fetch_dataset", SCRIPT)
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class _FakeService:
    def __init__(self, outcome) -> None:
        self.outcome = outcome
        self.closed = False

    async def get(self, name: str) -> DatasetResult:
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def script(monkeypatch) -> ModuleType:
    module = _load_script()
    monkeypatch.setattr(module, "configure_logging", lambda: None)
    return module


def _use(monkeypatch, script: ModuleType, outcome) -> _FakeService:
    service = _FakeService(outcome)
    monkeypatch.setattr(script, "DatasetService", lambda config: service)
    return service


def test_transform_failure_exits_1_with_message(monkeypatch, script, capsys) -> None:
    service = _use(monkeypatch, script, KeyError("vmsUnitTable"))

    assert script.main(["msi"]) == 1
    err = capsys.readouterr().err
    assert "msi failed (transform_failed)" in err
    assert service.closed is True


def test_upstream_failure_exits_1(monkeypatch, script, capsys) -> None:
    _use(monkeypatch, script, UpstreamFetchError("https://ndw.test/x.xml.gz", status_code=503))

    assert script.main(["incidents"]) == 1
    assert "upstream_http_503" in capsys.readouterr().err


def test_unknown_dataset_exits_2(monkeypatch, script, capsys) -> None:
    _use(monkeypatch, script, UnknownDatasetError("nope", ["msi", "drips"]))

    assert script.main(["nope"]) == 2
    assert "Available: drips, msi" in capsys.readouterr().err


def test_geojson_written_to_output(monkeypatch, script, tmp_path) -> None:
    collection = FeatureCollection(features=[point_feature((6.1, 52.5), {"id": "G1"})])
    _use(monkeypatch, script, DatasetResult("drips", collection, 3600, False))
    out = tmp_path / "drips.geojson"

    assert script.main(["drips", "--output", str(out)]) == 0
    assert json.loads(out.read_text(encoding="utf-8"))["features"][0]["properties"] == {"id": "G1"}
