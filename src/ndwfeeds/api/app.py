from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ndwfeeds.api.routes_datasets import router as datasets_router
from ndwfeeds.logging_config import configure_logging
from ndwfeeds.service import DatasetService
from ndwfeeds.settings import get_config


def create_app(service: Optional[DatasetService] = None) -> FastAPI:
    configure_logging()
    config = get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = service is None
        # The service holds an httpx.AsyncClient, so it is created on the serving event loop.
        app.state.service = service or DatasetService(config)
        try:
            yield
        finally:
            if owned:
                await app.state.service.aclose()

    app = FastAPI(title="NDW Feeds API", version="0.1.0", lifespan=lifespan)

    @app.get("/healthz")
    def healthz() -> dict[str, bool]:
        return {"ok": True}

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors.allow_origins,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.include_router(datasets_router, tags=["datasets"])
    return app


app = create_app()
