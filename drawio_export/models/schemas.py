"""
Pydantic Models and Schemas
===========================

Core data models for format directives, engine assets, rendered artifacts,
and API requests/responses.
"""

import math
import mimetypes
from typing import Optional, Dict, Any
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Enums
class CoreKind(str, Enum):
    """Output kinds the engine can be captured as."""
    PNG = "png"
    PDF = "pdf"


class Modifier(str, Enum):
    """Format prefixes recognised by the format grammar."""
    NONE = ""
    CAT = "cat-"
    SPLIT = "split-"
    SPLIT_INDEX = "split-index-"
    SPLIT_ID = "split-id-"
    SPLIT_NAME = "split-name-"


MIME_TYPES = {
    CoreKind.PNG: "image/png",
    CoreKind.PDF: "application/pdf",
}


# Format Models
class FormatDirective(BaseModel):
    """Parsed output format string."""
    model_config = ConfigDict(frozen=True)

    core: CoreKind = Field(..., description="Output kind")
    modifier: Modifier = Field(Modifier.NONE, description="Format prefix")
    raw: str = Field(..., description="Format string as supplied by the caller")

    @property
    def concatenate(self) -> bool:
        return self.modifier is Modifier.CAT

    @property
    def mime_type(self) -> str:
        return MIME_TYPES[self.core]

    @property
    def extension(self) -> str:
        return self.core.value


class ExportOptions(BaseModel):
    """Options forwarded to the engine render() call."""
    scale: float = Field(1.0, gt=0, description="Output resolution multiplier")
    border: float = Field(0, ge=0, description="Padding around the diagram")


# Cache Models
class CachedResource(BaseModel):
    """Remote engine asset mirrored into the local cache."""
    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description="Remote locator requested by the engine")
    name: str = Field(..., min_length=1, description="Path relative to the cache directory")

    @property
    def content_type(self) -> str:
        guessed, _ = mimetypes.guess_type(self.name)
        return guessed or "application/octet-stream"


# Rendering Models
class ContentBounds(BaseModel):
    """Content bounds reported by the engine completion marker."""
    x: float = 0.0
    y: float = 0.0
    width: float = Field(..., ge=0)
    height: float = Field(..., ge=0)

    @property
    def viewport(self) -> Dict[str, int]:
        """Viewport large enough to hold the rendered content."""
        return {
            "width": max(1, math.ceil(self.width)),
            "height": max(1, math.ceil(self.height)),
        }


class RenderedArtifact(BaseModel):
    """Bytes captured for one page by one render pass."""
    data: bytes = Field(..., description="PNG or PDF bytes", exclude=True)
    kind: CoreKind = Field(..., description="Output kind")
    page_index: int = Field(..., ge=0, description="Source page index")
    width: int = Field(..., gt=0, description="Viewport width in pixels")
    height: int = Field(..., gt=0, description="Viewport height in pixels")

    @property
    def size(self) -> int:
        return len(self.data)


# API Request/Response Models
class ExportRequest(BaseModel):
    """Request body for the export endpoints."""
    xml: str = Field(..., description="Draw.io XML content")
    format: str = Field("png", description="Output format, e.g. png, pdf, cat-pdf")
    scale: float = Field(1.0, gt=0, description="Scale factor")
    border: float = Field(0, ge=0, description="Border width")

    @field_validator("xml")
    @classmethod
    def validate_xml(cls, v: str) -> str:
        """Reject blank diagrams."""
        if not v.strip():
            raise ValueError("XML content is required in request body")
        return v

    def to_options(self) -> ExportOptions:
        return ExportOptions(scale=self.scale, border=self.border)


class Base64ExportResponse(BaseModel):
    """Response body for the base64 export endpoint."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    format: str
    mime_type: str = Field(..., alias="mimeType")
    data: str
    data_url: str = Field(..., alias="dataUrl")
    size: int


class HealthStatus(BaseModel):
    """Health check status."""
    status: str = "ok"
    version: str
    message: str = "Draw.io Export API is running"


class ErrorResponse(BaseModel):
    """Standard error response model."""
    error: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Error code")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), description="Error timestamp"
    )
    request_id: Optional[str] = Field(None, description="Request identifier for tracking")
