"""
FastAPI application entry point for the tribute site.
"""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exception_handlers import (
    http_exception_handler,
    request_validation_exception_handler,
)
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from sunbeam.config import get_settings
from sunbeam.pages import APP_ROOT, render
from sunbeam.pages import router as pages_router
from sunbeam.routes import router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    app = FastAPI(title="Sunbeam", version="0.1.0")
    app.include_router(router, prefix=settings.api_prefix)
    app.include_router(pages_router)

    app.mount(
        "/static",
        StaticFiles(directory=str(APP_ROOT / "static")),
        name="static",
    )
    comic_dir = Path(settings.comic_dir)
    if comic_dir.is_dir():
        app.mount(
            settings.comic_url_prefix,
            StaticFiles(directory=str(comic_dir)),
            name="comicpages",
        )
    else:
        logger.warning(
            "Comic directory %s not found; page images are not served", comic_dir
        )

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.exception_handler(StarletteHTTPException)
    async def not_found(request: Request, exc: StarletteHTTPException):
        if exc.status_code != 404:
            return await http_exception_handler(request, exc)
        if request.url.path.startswith(settings.api_prefix):
            return JSONResponse({"detail": exc.detail}, status_code=404)
        logger.info("No page for %s", request.url.path)
        return render(request, "not_found.html", status_code=404)

    @app.exception_handler(RequestValidationError)
    async def bad_request(request: Request, exc: RequestValidationError):
        if request.url.path.startswith(settings.api_prefix):
            return await request_validation_exception_handler(request, exc)
        logger.info("Rejected request for %s: %s", request.url.path, exc.errors())
        return render(request, "bad_request.html", status_code=400)

    return app


app = create_app()
