"""
FastAPI Application
==================

REST API for converting draw.io diagrams to PNG or PDF.
"""

from contextlib import asynccontextmanager
import uuid
from typing import AsyncGenerator, Any, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from drawio_export.api.routes.export import router as export_router
from drawio_export.api.routes.health import router as health_router
from drawio_export.config.logging import get_logger
from drawio_export.config.settings import get_settings
from drawio_export.core.exceptions import (
    CacheFetchError,
    ExportError,
    InvalidFormatError,
    InvalidOptionsError,
    RenderError,
    UnsupportedFormatError,
)
from drawio_export.core.format.parser import get_supported_formats
from drawio_export.core.rendering.exporter import get_exporter
from drawio_export.models.schemas import ErrorResponse

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info("Starting Draw.io Export API")

    # Renders fetch missing assets themselves, so a cold cache is not fatal
    try:
        await get_exporter().cache.ensure_all()
        logger.info("Engine asset cache ready")
    except CacheFetchError as e:
        logger.warning("Engine asset cache warm-up failed", url=e.url, error=str(e))

    yield

    logger.info("Shutting down Draw.io Export API")


settings = get_settings()
app = FastAPI(
    title=settings.app_name,
    description="REST API for converting Draw.io XML diagrams to PNG or PDF",
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_hosts,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(export_router)


# Request ID middleware
@app.middleware("http")
async def add_request_id(request: Request, call_next) -> JSONResponse:  # type: ignore
    """Add request ID to all requests."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    response = await call_next(request)  # type: ignore
    response.headers["X-Request-ID"] = request_id  # type: ignore

    return response  # type: ignore


def error_response(
    request: Request,
    status_code: int,
    error: str,
    error_code: str,
    details: Optional[dict] = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=error,
        error_code=error_code,
        details=details,
        request_id=getattr(request.state, "request_id", None),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


# Exception handlers
@app.exception_handler(HTTPException)
async def custom_http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom HTTP exception handler with structured error response."""
    logger.warning("HTTP exception", status_code=exc.status_code, detail=exc.detail)
    response = error_response(request, exc.status_code, str(exc.detail), str(exc.status_code))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(ExportError)
async def export_exception_handler(request: Request, exc: ExportError) -> JSONResponse:
    """Map pipeline failures to HTTP status codes."""
    details: dict[str, Any] = {"message": str(exc)}

    if isinstance(exc, (InvalidFormatError, UnsupportedFormatError)):
        status_code, error_code = 400, "INVALID_FORMAT"
        details["supported_formats"] = get_supported_formats()
    elif isinstance(exc, InvalidOptionsError):
        status_code, error_code = 400, "INVALID_OPTIONS"
    elif isinstance(exc, CacheFetchError):
        status_code, error_code = 502, "ASSET_FETCH_FAILED"
        details["url"] = exc.url
    elif isinstance(exc, RenderError):
        status_code, error_code = 500, "RENDER_FAILED"
        if exc.page_index is not None:
            details["page_index"] = exc.page_index
    else:
        status_code, error_code = 500, "EXPORT_FAILED"

    logger.error("Export failed", error_code=error_code, error=str(exc))
    return error_response(request, status_code, "Export failed", error_code, details)


@app.get("/", tags=["General"])
async def root() -> dict[str, Any]:
    """Root endpoint with basic API information."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Convert Draw.io XML diagrams to PNG or PDF",
        "docs_url": "/docs",
        "health_check": "/health",
        "formats": get_supported_formats(),
        "endpoints": {
            "export": "POST /api/export",
            "export_base64": "POST /api/export/base64",
        },
    }


def run_server(host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Run the API server."""
    uvicorn.run(
        "drawio_export.api.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


if __name__ == "__main__":
    run_server()
