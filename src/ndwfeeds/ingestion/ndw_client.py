"""NDW open-data download client.

Feeds are plain files on opendata.ndw.nu, most of them gzip-compressed XML. The client only
fetches and decompresses; decoding and transformation happen in the caller. Failures are not
retried: the caller serves the error and the next request tries again.
"""

from __future__ import annotations

import asyncio
import gzip
import logging
import zlib
from typing import Optional

import httpx

from ndwfeeds.ingestion.errors import FeedParseError, UpstreamFetchError
from ndwfeeds.settings import AppConfig, get_config


logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"


def maybe_gunzip(payload: bytes, url: str = "") -> bytes:
    """Decompress gzip payloads (detected by magic bytes); pass anything else through."""

    if not payload.startswith(GZIP_MAGIC):
        if url.endswith(".gz"):
            # Some mirrors serve the .gz path already decoded via Content-Encoding.
            logger.debug("%s is not gzip-framed; using it as is.", url)
        return payload
    try:
        return gzip.decompress(payload)
    except (OSError, EOFError, zlib.error) as exc:
        raise FeedParseError(f"gzip decompression failed for {url}: {exc}") from exc


class NdwClient:
    """Async downloader for NDW feeds. Owns its `httpx.AsyncClient` unless one is injected."""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config or get_config()
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=self.config.ndw.request_timeout_seconds,
            headers={"user-agent": self.config.ndw.user_agent},
            follow_redirects=True,
        )

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    def url_for(self, path: str) -> str:
        return self.config.ndw.url_for(path)

    async def fetch(self, path: str) -> bytes:
        """Download one feed and return its (decompressed) bytes."""

        url = self.url_for(path)
        try:
            response = await self._http.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = int(exc.response.status_code)
            logger.warning("NDW fetch failed (%s): %s", status, url)
            raise UpstreamFetchError(url, status_code=status) from exc
        except httpx.HTTPError as exc:
            logger.warning("NDW fetch error (%s): %s", type(exc).__name__, url)
            raise UpstreamFetchError(url, reason=type(exc).__name__) from exc

        payload = response.content
        logger.info("Fetched %s (%s bytes).", url, len(payload))
        return await asyncio.to_thread(maybe_gunzip, payload, url)

    async def fetch_text(self, path: str) -> str:
        data = await self.fetch(path)
        return data.decode("utf-8", errors="replace")
