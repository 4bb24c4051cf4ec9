from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from ndwfeeds.ingestion.errors import NdwFeedError, UnknownDatasetError, classify_feed_error
from ndwfeeds.service import DatasetResult, DatasetService
from ndwfeeds.storage.exports import features_to_frame


logger = logging.getLogger(__name__)

router = APIRouter()


class DatasetInfo(BaseModel):
    name: str
    ttl_seconds: int
    feeds: list[str]


def _service(request: Request) -> DatasetService:
    return request.app.state.service


def _error_response(dataset: str, exc: Exception) -> JSONResponse:
    info = classify_feed_error(exc)
    if isinstance(exc, NdwFeedError):
        logger.warning("Dataset %s failed (%s): %s", dataset, info.code, info.message)
    else:
        logger.exception("Dataset %s failed while transforming.", dataset)
    content: dict[str, object] = {"error": info.message, "code": info.code}
    if isinstance(exc, UnknownDatasetError):
        content["available"] = exc.available
    return JSONResponse(status_code=info.http_status, content=content)


def _cache_headers(result: DatasetResult) -> dict[str, str]:
    return {
        "Cache-Control": result.cache_control,
        "X-Cache": "HIT" if result.cache_hit else "MISS",
    }


@router.get("/datasets", response_model=list[DatasetInfo])
def list_datasets(request: Request) -> list[DatasetInfo]:
    service = _service(request)
    items = []
    for name in service.available():
        feeds = service.config.ndw.datasets[name]
        items.append(
            DatasetInfo(
                name=name,
                ttl_seconds=service.ttl_for(name),
                feeds=[feeds] if isinstance(feeds, str) else list(feeds),
            )
        )
    return items


# Registered before `/datasets/{dataset}` so the `.csv` suffix is not taken as part of the name.
@router.get("/datasets/{dataset}.csv")
async def export_dataset_csv(dataset: str, request: Request) -> Response:
    try:
        result = await _service(request).get(dataset)
    except Exception as exc:  # noqa: BLE001 - every failure is reported, none retried
        return _error_response(dataset, exc)

    content = features_to_frame(result.collection).to_csv(index=False)
    headers = _cache_headers(result)
    headers["Content-Disposition"] = f'attachment; filename="{dataset}.csv"'
    return Response(content=content, media_type="text/csv; charset=utf-8", headers=headers)


@router.get("/datasets/{dataset}")
async def get_dataset(dataset: str, request: Request) -> Response:
    try:
        result = await _service(request).get(dataset)
    except Exception as exc:  # noqa: BLE001 - every failure is reported, none retried
        return _error_response(dataset, exc)

    return JSONResponse(content=result.collection.to_geojson(), headers=_cache_headers(result))
