from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from clipstore.api.routes import get_api_router
from clipstore.api.routes.schemas import ErrorResponse
from clipstore.core.config import get_settings
from clipstore.core.db import create_engine, create_session_factory
from clipstore.core.errors import ClipstoreError
from clipstore.core.logging import configure_logging, get_logger
from clipstore.core.storage import get_asset_store, get_video_store
from clipstore.media import SubprocessToolRunner


logger = get_logger(component="api")


async def handle_clipstore_error(request: Request, exc: ClipstoreError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "request_failed",
            path=request.url.path,
            status_code=exc.status_code,
            error=exc.code,
            exc_info=exc,
        )
    else:
        logger.info("request_rejected", path=request.url.path, status_code=exc.status_code, error=exc.code)
    payload = ErrorResponse(error=exc.code, detail=exc.message)
    return JSONResponse(status_code=exc.status_code, content=payload.model_dump())


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(level=settings.log_level)
    asset_store = get_asset_store(settings)
    video_store = get_video_store(settings)
    tool_runner = SubprocessToolRunner(default_timeout_s=settings.tool_timeout_s)
    engine = create_engine(settings)
    session_factory = create_session_factory(engine)

    if settings.staging_dir is not None:
        Path(settings.staging_dir).mkdir(parents=True, exist_ok=True)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.settings = settings
        app.state.asset_store = asset_store
        app.state.video_store = video_store
        app.state.tool_runner = tool_runner
        app.state.engine = engine
        app.state.session_factory = session_factory
        try:
            yield
        finally:
            await engine.dispose()

    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        lifespan=lifespan,
        openapi_url="/openapi.json",
        docs_url="/docs",
    )

    app.add_exception_handler(ClipstoreError, handle_clipstore_error)
    app.include_router(get_api_router())
    app.mount("/assets", StaticFiles(directory=str(settings.assets_root)), name="assets")
    return app


__all__ = ["create_app", "handle_clipstore_error"]
