from __future__ import annotations

import logging

from ndwfeeds.logging_config import configure_logging


def test_builtin_setup_applies_package_level(monkeypatch, tmp_path) -> None:
    monkeypatch.delenv("NDWFEEDS_LOG_LEVEL", raising=False)
    configure_logging(tmp_path / "missing.yaml", level="debug")

    assert logging.getLogger("ndwfeeds").level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING


def test_level_from_environment(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("NDWFEEDS_LOG_LEVEL", "warning")
    configure_logging(tmp_path / "missing.yaml")

    assert logging.getLogger("ndwfeeds").level == logging.WARNING


def test_yaml_file_wins(monkeypatch, tmp_path) -> None:
    monkeypatch.delenv("NDWFEEDS_LOG_LEVEL", raising=False)
    path = tmp_path / "logging.yaml"
    path.write_text(
        "version: 1\n"
        "disable_existing_loggers: false\n"
        "loggers:\n"
        "  ndwfeeds:\n"
        "    level: ERROR\n",
        encoding="utf-8",
    )
    configure_logging(path)

    assert logging.getLogger("ndwfeeds").level == logging.ERROR


def test_level_override_applies_over_yaml(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("NDWFEEDS_LOG_LEVEL", "debug")
    path = tmp_path / "logging.yaml"
    path.write_text(
        "version: 1\n"
        "disable_existing_loggers: false\n"
        "loggers:\n"
        "  ndwfeeds:\n"
        "    level: INFO\n",
        encoding="utf-8",
    )
    configure_logging(path)

    assert logging.getLogger("ndwfeeds").level == logging.DEBUG
