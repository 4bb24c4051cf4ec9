from __future__ import annotations

import pandas as pd

from ndwfeeds.geo.features import FeatureCollection, point_feature, polygon_feature
from ndwfeeds.storage.exports import export_csv_path, features_to_frame, save_csv


def test_features_to_frame_flattens_points_and_nested_values(tmp_path) -> None:
    collection = FeatureCollection(
        features=[
            point_feature((6.1, 52.5), {"id": "G1", "lanes": [{"lane": 1}]}),
            polygon_feature([(6.0, 52.5), (6.1, 52.5), (6.1, 52.6), (6.0, 52.5)], {"name": "Zone"}),
        ]
    )
    df = features_to_frame(collection)

    assert list(df["geometry_type"]) == ["Point", "Polygon"]
    assert df.loc[0, "lon"] == 6.1
    assert df.loc[0, "lanes"] == '[{"lane": 1}]'
    assert pd.isna(df.loc[1, "lat"])

    out = save_csv(df, export_csv_path(tmp_path / "exports", "msi"))
    assert out.exists()
    assert out.read_text(encoding="utf-8").splitlines()[0].startswith("geometry_type,lon,lat")
