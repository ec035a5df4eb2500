"""
Export Errors
=============

Typed failures raised by the export pipeline.
"""

from typing import Optional


class ExportError(Exception):
    """Base class for every export pipeline failure."""

    pass


class InvalidFormatError(ExportError):
    """Raised when a format string does not match the format grammar."""

    def __init__(self, format_string: str):
        self.format_string = format_string
        super().__init__(f"Invalid format: {format_string}")


class UnsupportedFormatError(ExportError):
    """Raised when a well-formed format string asks for something we cannot produce."""

    pass


class CacheFetchError(ExportError):
    """Raised when an engine asset cannot be fetched into the cache."""

    def __init__(self, url: str, reason: str):
        self.url = url
        super().__init__(f"Failed to fetch {url}: {reason}")


class RenderError(ExportError):
    """Raised when the browser or the engine fails during a render."""

    def __init__(self, message: str, page_index: Optional[int] = None):
        self.page_index = page_index
        if page_index is not None:
            message = f"Page {page_index}: {message}"
        super().__init__(message)


class InvalidOptionsError(ExportError):
    """Raised when render options are out of range."""

    pass
