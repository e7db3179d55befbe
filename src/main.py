from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.router import router
from src.config import Settings, settings
from src.core.exceptions import register_exception_handlers
from src.core.logging import log_requests, setup_logging
from src.services.bg_removal import BackgroundRemovalClient
from src.services.providers import get_adapter
from src.services.temp_store import TemporaryFileStore

logger = structlog.get_logger()


def create_app(app_settings: Settings | None = None, transport: httpx.AsyncBaseTransport | None = None) -> FastAPI:
    app_settings = app_settings or settings
    setup_logging(app_settings.log_level, json_logs=app_settings.is_production)

    store = TemporaryFileStore(app_settings.uploads_path)
    remover = BackgroundRemovalClient(
        adapter=get_adapter(app_settings.provider),
        credential=app_settings.credential(),
        timeout=app_settings.provider_timeout,
        transport=transport,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        store.sweep(app_settings.stale_upload_ttl)
        logger.info(
            "server_started",
            port=app_settings.port,
            provider=remover.adapter.name,
            api_key_configured=remover.configured,
            environment=app_settings.environment,
        )
        yield
        await remover.aclose()

    app = FastAPI(title=app_settings.app_name, lifespan=lifespan)
    app.state.settings = app_settings
    app.state.store = store
    app.state.remover = remover

    # Unknown origins are only accepted outside production.
    origins: dict[str, Any] = (
        {"allow_origins": app_settings.cors_origins}
        if app_settings.is_production
        else {"allow_origin_regex": r"https?://.*"}
    )
    app.add_middleware(
        CORSMiddleware,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        **origins,
    )
    app.middleware("http")(log_requests)

    register_exception_handlers(app, expose_details=not app_settings.is_production)
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("src.main:app", host=settings.host, port=settings.port, log_level=settings.log_level)
