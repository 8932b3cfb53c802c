"""
openclaw — FastAPI service

Run/artifact lifecycle store with liveness, smoke-test and operator routes
for the database and the object-storage bucket.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from openclaw.config import Settings, get_settings
from openclaw.db.schema import init_schema
from openclaw.db.session import build_sessionmaker, engine_from_settings
from openclaw.errors import OpenclawError
from openclaw.routes import admin, diagnostics, health, runs
from openclaw.services.object_storage import ObjectStorage

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _error_response(error: OpenclawError) -> JSONResponse:
    body = {"ok": False, "error": error.code}
    if error.expose_message:
        body["message"] = str(error)
    headers = {"Retry-After": "5"} if error.retryable else None
    return JSONResponse(status_code=error.status_code, content=body, headers=headers)


async def handle_service_error(request: Request, exc: OpenclawError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed with %s: %s", request.method, request.url.path, exc.code, exc,
            exc_info=exc,
        )
    else:
        logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc)
    return _error_response(exc)


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("%s %s -> validation_error: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(
        status_code=400,
        content={"ok": False, "error": "validation_error", "message": "Invalid request."},
    )


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s failed unexpectedly", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"ok": False, "error": "internal_error"})


def create_app(settings: Settings | None = None, storage: ObjectStorage | None = None) -> FastAPI:
    """
    Build the application.

    The engine (with its pool) and the object-storage client are created in
    the lifespan and released on shutdown; handlers reach them through
    dependencies. A pre-built ``storage`` may be passed in.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = engine_from_settings(settings)
        app.state.settings = settings
        app.state.engine = engine
        app.state.sessions = build_sessionmaker(engine)
        app.state.storage = storage or ObjectStorage.from_settings(settings)
        if settings.auto_init_schema:
            await init_schema(engine)
        logger.info("openclaw ready (bucket=%s)", settings.b2_bucket)
        try:
            yield
        finally:
            await engine.dispose()
            if storage is None:
                app.state.storage.close()
            logger.info("openclaw stopped")

    app = FastAPI(
        title="openclaw",
        description="Run and artifact lifecycle service.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_exception_handler(OpenclawError, handle_service_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_unexpected)

    app.include_router(health.router)
    app.include_router(admin.router)
    if settings.enable_diagnostics:
        app.include_router(diagnostics.router)
    if settings.enable_run_api:
        app.include_router(runs.router)

    return app


def run() -> None:
    settings = get_settings()
    configure_logging(settings)
    logger.info("openclaw listening on %s:%s", settings.host, settings.port)
    uvicorn.run(
        "openclaw.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
