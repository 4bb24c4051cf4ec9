from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

from ndwfeeds.ingestion.errors import UnknownDatasetError, classify_feed_error
from ndwfeeds.logging_config import configure_logging
from ndwfeeds.service import DatasetResult, DatasetService
from ndwfeeds.settings import get_config
from ndwfeeds.storage.exports import export_csv_path, features_to_frame, save_csv


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Fetch one NDW dataset and write it as GeoJSON or CSV.")
    p.add_argument("dataset", help="Dataset name (e.g. incidents, msi, trafficspeed).")
    p.add_argument("--format", choices=["geojson", "csv"], default="geojson")
    p.add_argument(
        "--output",
        default=None,
        help="Output path (default: stdout for geojson, config.paths.export_dir for csv).",
    )
    return p.parse_args(argv)


async def _fetch(service: DatasetService, dataset: str) -> DatasetResult:
    try:
        return await service.get(dataset)
    finally:
        await service.aclose()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging()
    config = get_config()
    service = DatasetService(config)

    try:
        result = asyncio.run(_fetch(service, args.dataset))
    except UnknownDatasetError as exc:
        print(f"[fetch] {exc}. Available: {', '.join(exc.available)}", file=sys.stderr)
        return 2
    except Exception as exc:  # noqa: BLE001 - fetch, parse and transform failures all exit 1
        info = classify_feed_error(exc)
        print(f"[fetch] {args.dataset} failed ({info.code}): {info.message}", file=sys.stderr)
        return 1

    if args.format == "csv":
        out_path = Path(args.output) if args.output else export_csv_path(config.paths.export_dir, args.dataset)
        save_csv(features_to_frame(result.collection), out_path)
        print(f"[fetch] wrote {len(result.collection.features)} features to {out_path}")
        return 0

    text = json.dumps(result.collection.to_geojson(), ensure_ascii=False)
    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
    else:
        print(text)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
