"""
FastAPI application entry point for the accounts backend.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from accounts_backend.config import Settings, get_settings
from accounts_backend.dependencies import get_db_client
from accounts_backend.errors import ApiError, ErrorCode, StorageUnavailable
from accounts_backend.routes import router, upload_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    override = app.dependency_overrides.get(get_db_client)
    try:
        db = override() if override else get_db_client(app.state.settings)
        db.ping()
    except StorageUnavailable:
        logger.critical("Error connecting to the database", exc_info=True)
        raise SystemExit(1)
    yield


async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.as_dict())


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.debug("Rejected request body for %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=400,
        content={
            "message": "Please provide all required fields.",
            "error": ErrorCode.MALFORMED_REQUEST.value,
        },
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "message": "Internal server error",
            "error": ErrorCode.INTERNAL_ERROR.value,
        },
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    app = FastAPI(
        title="Accounts Backend (FastAPI)", version="0.1.0", lifespan=lifespan
    )
    app.state.settings = settings
    app.dependency_overrides[get_settings] = lambda: settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ApiError, handle_api_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(router, prefix=settings.api_prefix)
    if settings.stores_images_on_disk:
        app.include_router(upload_router, prefix=settings.api_prefix)
        if not settings.cos_bucket and not settings.use_in_memory_backends:
            app.mount(
                settings.static_url_prefix,
                StaticFiles(directory=settings.static_root, check_dir=False),
                name="uploads",
            )
    return app


app = create_app()
