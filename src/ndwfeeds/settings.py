from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field


def project_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _resolve_path(root: Path, value: str | Path) -> Path:
    path = Path(value)
    return path if path.is_absolute() else (root / path)


NDW_OPENDATA = "https://opendata.ndw.nu"


class AppSection(BaseModel):
    name: str = "ndwfeeds"
    timezone: str = "Europe/Amsterdam"


class NdwSection(BaseModel):
    base_url: str = NDW_OPENDATA
    request_timeout_seconds: int = 60
    user_agent: str = "ndwfeeds/0.1"
    # Dataset name -> one feed path, or [reference table, live feed] for joined datasets.
    datasets: dict[str, str | list[str]] = Field(
        default_factory=lambda: {
            "incidents": "incidents.xml.gz",
            "actueel": "actueel_beeld.xml.gz",
            "srti": "srti.xml.gz",
            "brugopeningen": "brugopeningen.xml.gz",
            "emissiezones": "emissiezones.xml.gz",
            "maxsnelheden": "tijdelijke_verkeersmaatregelen_maximum_snelheden.xml.gz",
            "drips": "LocatietabelDRIPS.xml.gz",
            "msi": ["LocatietabelDRIPS.xml.gz", "Matrixsignaalinformatie.xml.gz"],
            "truckparking": [
                "Truckparking_Parking_Table.xml",
                "Truckparking_Parking_Status.xml",
            ],
            "trafficspeed": ["measurement.xml.gz", "trafficspeed.xml.gz"],
        }
    )

    def url_for(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"


class RegionSection(BaseModel):
    # Wider than the municipality so the surrounding motorways are included.
    min_lat: float = 52.35
    max_lat: float = 52.65
    min_lon: float = 5.85
    max_lon: float = 6.35


class CacheSection(BaseModel):
    enabled: bool = True
    default_ttl_seconds: int = 300
    reference_ttl_seconds: int = 24 * 3600
    ttl_seconds: dict[str, int] = Field(
        default_factory=lambda: {
            "incidents": 60,
            "actueel": 60,
            "srti": 60,
            "brugopeningen": 60,
            "trafficspeed": 60,
            "msi": 60,
            "truckparking": 120,
            "maxsnelheden": 300,
            "emissiezones": 3600,
            "drips": 3600,
        }
    )

    def ttl_for(self, dataset: str) -> int:
        return int(self.ttl_seconds.get(dataset, self.default_ttl_seconds))


class MsiSection(BaseModel):
    match_threshold_km: float = 5.0


class CorsSection(BaseModel):
    allow_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:8000"]
    )


class ApiSection(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    cors: CorsSection = Field(default_factory=CorsSection)


class PathsSection(BaseModel):
    export_dir: Path = Path("data/exports")


class AppConfig(BaseModel):
    app: AppSection = Field(default_factory=AppSection)
    paths: PathsSection = Field(default_factory=PathsSection)
    ndw: NdwSection = Field(default_factory=NdwSection)
    region: RegionSection = Field(default_factory=RegionSection)
    cache: CacheSection = Field(default_factory=CacheSection)
    msi: MsiSection = Field(default_factory=MsiSection)
    api: ApiSection = Field(default_factory=ApiSection)

    def resolve_paths(self, root: Optional[Path] = None) -> "AppConfig":
        repo_root = project_root() if root is None else root
        updated_paths = self.paths.model_copy(
            update={"export_dir": _resolve_path(repo_root, self.paths.export_dir)}
        )
        return self.model_copy(update={"paths": updated_paths})


def _maybe_load_dotenv() -> None:
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return

    load_dotenv()


def load_config(config_path: str | Path | None = None) -> AppConfig:
    _maybe_load_dotenv()

    root = project_root()
    candidate = config_path or os.getenv("NDWFEEDS_CONFIG", "configs/config.yaml")
    path = _resolve_path(root, candidate)
    if not path.exists():
        path = root / "configs/config.example.yaml"
    if not path.exists():
        return AppConfig().resolve_paths(root)

    data: dict[str, Any] = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    return AppConfig.model_validate(data).resolve_paths(root)


_CONFIG: AppConfig | None = None


def get_config() -> AppConfig:
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = load_config()
    return _CONFIG
