"""
FastAPI application entry point for the portfolio backend.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from portfolio_backend.admin_routes import router as admin_router
from portfolio_backend.config import get_settings
from portfolio_backend.errors import DuplicateIdError, StorageFault
from portfolio_backend.routes import router

logger = logging.getLogger(__name__)


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def _validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": jsonable_errors(exc)},
    )


async def _duplicate_id(request: Request, exc: DuplicateIdError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"error": str(exc)})


async def _internal_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    app = FastAPI(title="Portfolio Backend (FastAPI)", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(HTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(DuplicateIdError, _duplicate_id)
    app.add_exception_handler(StorageFault, _internal_error)
    app.add_exception_handler(Exception, _internal_error)

    app.include_router(router, prefix=settings.api_prefix)
    app.include_router(admin_router, prefix=settings.admin_prefix)

    if not settings.use_in_memory_backends and not settings.s3_bucket:
        app.mount(
            settings.uploads_mount,
            StaticFiles(directory=settings.upload_dir, check_dir=False),
            name="uploads",
        )

    @app.get("/")
    def health_check():
        prefix = settings.api_prefix
        return {
            "status": "ok",
            "message": "Portfolio backend ready",
            "docs": [
                settings.admin_prefix,
                f"{prefix}/about",
                f"{prefix}/logo",
                f"{prefix}/categories",
                f"{prefix}/images",
                f"{prefix}/references",
            ],
        }

    return app


app = create_app()
