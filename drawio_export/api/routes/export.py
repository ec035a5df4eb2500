"""
Export Routes
=============

FastAPI routes converting draw.io XML to PNG or PDF.
Returns either the raw file or a base64 JSON envelope.
"""

import base64

from fastapi import APIRouter, Depends, Response

from drawio_export.api.auth import validate_api_key
from drawio_export.config.logging import get_logger
from drawio_export.core.format.parser import parse_format
from drawio_export.core.rendering.exporter import get_exporter
from drawio_export.models.schemas import Base64ExportResponse, ExportRequest, FormatDirective

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["Export"], dependencies=[Depends(validate_api_key)])


async def export_diagram(request: ExportRequest) -> tuple[FormatDirective, bytes]:
    """
    Render a request with the global exporter.

    Returns:
        The parsed directive and the rendered bytes
    """
    directive = parse_format(request.format)
    logger.info("Exporting diagram", format=directive.raw)
    data = await get_exporter().render(request.xml, request.format, request.to_options())
    logger.info("Exported diagram", format=directive.raw, size=len(data))
    return directive, data


@router.post("/export")
async def export_binary(request: ExportRequest) -> Response:
    """Export a diagram and return the file as an attachment."""
    directive, data = await export_diagram(request)
    return Response(
        content=data,
        media_type=directive.mime_type,
        headers={
            "Content-Disposition": f'attachment; filename="diagram.{directive.extension}"'
        },
    )


@router.post("/export/base64", response_model=Base64ExportResponse)
async def export_base64(request: ExportRequest) -> Base64ExportResponse:
    """Export a diagram and return it base64 encoded for embedding."""
    directive, data = await export_diagram(request)
    encoded = base64.b64encode(data).decode("utf-8")
    return Base64ExportResponse(
        format=request.format,
        mime_type=directive.mime_type,
        data=encoded,
        data_url=f"data:{directive.mime_type};base64,{encoded}",
        size=len(data),
    )
