from __future__ import annotations

import logging.config
import os
from pathlib import Path
from typing import Any, Optional

import yaml

from ndwfeeds.settings import project_root


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def default_logging_config(level: str = "INFO") -> dict[str, Any]:
    """Console logging for the service; feed fetches and refreshes log under `ndwfeeds.*`."""

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"standard": {"format": LOG_FORMAT}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": "DEBUG",
                "formatter": "standard",
                "stream": "ext://sys.stderr",
            }
        },
        "loggers": {
            "ndwfeeds": {"level": level, "propagate": True},
            # httpx logs every request at INFO; NdwClient already logs each fetch.
            "httpx": {"level": "WARNING"},
            "httpcore": {"level": "WARNING"},
        },
        "root": {"level": "INFO", "handlers": ["console"]},
    }


def configure_logging(logging_config_path: str | Path | None = None, level: Optional[str] = None) -> None:
    """Apply `configs/logging.yaml` (or `NDWFEEDS_LOGGING_CONFIG`), else the built-in console setup.

    `level` (or `NDWFEEDS_LOG_LEVEL`) sets the `ndwfeeds` logger on top of either setup, e.g.
    DEBUG to see the per-dataset dropped-record counts.
    """

    root = project_root()
    candidate = logging_config_path or os.getenv(
        "NDWFEEDS_LOGGING_CONFIG", "configs/logging.yaml"
    )
    path = Path(candidate)
    if not path.is_absolute():
        path = root / path
    override = level or os.getenv("NDWFEEDS_LOG_LEVEL")
    if not path.exists():
        logging.config.dictConfig(default_logging_config((override or "INFO").upper()))
        return

    config: dict[str, Any] = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    logging.config.dictConfig(config)
    if override:
        logging.getLogger("ndwfeeds").setLevel(override.upper())
