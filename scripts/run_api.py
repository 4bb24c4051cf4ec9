from __future__ import annotations

import argparse

import uvicorn

from ndwfeeds.settings import get_config


def parse_args() -> argparse.Namespace:
    config = get_config()
    p = argparse.ArgumentParser(description="Serve the NDW dataset API (GeoJSON and CSV).")
    p.add_argument("--host", default=config.api.host)
    p.add_argument("--port", type=int, default=int(config.api.port))
    p.add_argument("--reload", action="store_true", help="Restart on source changes (development).")
    return p.parse_args()


def main() -> None:
    args = parse_args()
    # Dataset caches are per process.
    uvicorn.run(
        "ndwfeeds.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=1,
        log_level="info",
    )


if __name__ == "__main__":
    main()
