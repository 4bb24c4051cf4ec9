from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pandas as pd

from ndwfeeds.geo.features import FeatureCollection, Point


def ensure_parent_dir(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def export_csv_path(export_dir: Path, dataset: str) -> Path:
    return export_dir / f"{dataset}.csv"


def _flat(value: Any) -> Any:
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, sort_keys=True)
    return value


def features_to_frame(collection: FeatureCollection) -> pd.DataFrame:
    """One row per feature: geometry type, lon/lat for points, then the properties.

    Nested property values (e.g. MSI lanes) are JSON-encoded so the frame stays flat.
    """

    rows: list[dict[str, Any]] = []
    for feature in collection.features:
        row: dict[str, Any] = {"geometry_type": feature.geometry.type}
        if isinstance(feature.geometry, Point):
            row["lon"], row["lat"] = feature.geometry.coordinates
        else:
            row["lon"], row["lat"] = None, None
        for key, value in feature.properties.items():
            row[key] = _flat(value)
        rows.append(row)
    return pd.DataFrame(rows)


def save_csv(df: pd.DataFrame, path: Path) -> Path:
    ensure_parent_dir(path)
    df.to_csv(path, index=False)
    return path
