from __future__ import annotations

import asyncio

import pytest

from ndwfeeds.utils.cache import TtlCache


def test_entry_expires_at_ttl(monkeypatch) -> None:
    now = {"t": 1000.0}
    monkeypatch.setattr("ndwfeeds.utils.cache.time.time", lambda: now["t"])

    cache: TtlCache[int] = TtlCache()
    calls = {"count": 0}

    async def loader() -> int:
        calls["count"] += 1
        return calls["count"]

    assert asyncio.run(cache.get_or_load("k", 60, loader)) == (1, False)
    now["t"] += 59.0
    assert asyncio.run(cache.get_or_load("k", 60, loader)) == (1, True)
    now["t"] += 2.0
    assert asyncio.run(cache.get_or_load("k", 60, loader)) == (2, False)
    assert cache.age_seconds("k") == 0.0


def test_concurrent_misses_share_one_load() -> None:
    cache: TtlCache[str] = TtlCache()
    calls = {"count": 0}

    async def loader() -> str:
        calls["count"] += 1
        await asyncio.sleep(0.01)
        return "value"

    async def run() -> list[tuple[str, bool]]:
        return await asyncio.gather(*(cache.get_or_load("k", 60, loader) for _ in range(5)))

    results = asyncio.run(run())
    assert calls["count"] == 1
    assert [value for value, _ in results] == ["value"] * 5


def test_failed_load_is_not_cached() -> None:
    cache: TtlCache[str] = TtlCache()
    calls = {"count": 0}

    async def loader() -> str:
        calls["count"] += 1
        if calls["count"] == 1:
            raise RuntimeError("upstream down")
        return "ok"

    with pytest.raises(RuntimeError):
        asyncio.run(cache.get_or_load("k", 60, loader))
    assert asyncio.run(cache.get_or_load("k", 60, loader)) == ("ok", False)


def test_disabled_cache_always_loads() -> None:
    cache: TtlCache[int] = TtlCache(enabled=False)
    cache.set("k", 1)
    assert cache.get("k", 60) is None
    assert cache.clear() == 0
