from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

import httpx


class NdwFeedError(RuntimeError):
    """Base class for failures surfaced to callers of the dataset service."""


class UnknownDatasetError(NdwFeedError):
    def __init__(self, dataset: str, available: Iterable[str]) -> None:
        self.dataset = dataset
        self.available = sorted(available)
        super().__init__(f"Unknown dataset: {dataset}")


class UpstreamFetchError(NdwFeedError):
    """Non-2xx response or network failure while fetching an upstream feed."""

    def __init__(self, url: str, status_code: Optional[int] = None, reason: str = "") -> None:
        self.url = url
        self.status_code = status_code
        detail = f"HTTP {status_code}" if status_code is not None else (reason or "network error")
        super().__init__(f"NDW fetch failed: {detail} ({url})")


class FeedParseError(NdwFeedError):
    """Malformed XML or a payload that could not be decompressed."""


@dataclass(frozen=True)
class FeedErrorInfo:
    code: str
    kind: str
    message: str
    http_status: int


def classify_feed_error(exc: Exception) -> FeedErrorInfo:
    """Classify dataset failures into stable codes and the HTTP status to answer with."""

    text = str(exc)

    if isinstance(exc, UnknownDatasetError):
        return FeedErrorInfo(code="unknown_dataset", kind="request", message=text, http_status=404)

    if isinstance(exc, UpstreamFetchError):
        if exc.status_code is not None:
            return FeedErrorInfo(
                code=f"upstream_http_{exc.status_code}", kind="http", message=text, http_status=502
            )
        return FeedErrorInfo(code="upstream_network", kind="network", message=text, http_status=502)

    if isinstance(exc, httpx.HTTPStatusError):
        status = int(exc.response.status_code)
        return FeedErrorInfo(code=f"upstream_http_{status}", kind="http", message=text, http_status=502)

    if isinstance(exc, (httpx.ConnectTimeout, httpx.ReadTimeout, httpx.WriteTimeout, httpx.PoolTimeout)):
        return FeedErrorInfo(code="timeout", kind="network", message=text, http_status=504)

    if isinstance(exc, httpx.TransportError):
        return FeedErrorInfo(code="upstream_network", kind="network", message=text, http_status=502)

    if isinstance(exc, FeedParseError):
        return FeedErrorInfo(code="parse_failed", kind="decode", message=text, http_status=500)

    return FeedErrorInfo(code="transform_failed", kind="unknown", message=text or type(exc).__name__, http_status=500)
