"""
Page Aggregator
===============

Merges independently rendered PDF pages into one document with pypdf.
"""

import io
from typing import Any, List

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PyPdfError

from drawio_export.config.logging import get_logger
from drawio_export.core.exceptions import RenderError
from drawio_export.models.schemas import CoreKind, RenderedArtifact

logger = get_logger(__name__)


class PageAggregator:
    """Collects PDF page artifacts in page order and merges them."""

    def __init__(self) -> None:
        self.pages: List[RenderedArtifact] = []
        self.logger: Any = logger.bind(component="page_aggregator")

    def add(self, artifact: RenderedArtifact) -> None:
        """
        Append the next page.

        Raises:
            ValueError: If the artifact is not a PDF or arrives out of order
        """
        if artifact.kind is not CoreKind.PDF:
            raise ValueError(f"Only pdf pages can be merged, got {artifact.kind.value}")

        expected = len(self.pages)
        if artifact.page_index != expected:
            raise ValueError(f"Expected page {expected}, got page {artifact.page_index}")

        self.pages.append(artifact)

    def merge(self) -> bytes:
        """
        Concatenate the collected pages into one PDF.

        Returns:
            Merged PDF bytes

        Raises:
            RenderError: If no page was added or a page is not a readable PDF
        """
        if not self.pages:
            raise RenderError("No pages to merge")

        writer = PdfWriter()
        for artifact in self.pages:
            try:
                writer.append(PdfReader(io.BytesIO(artifact.data)))
            except PyPdfError as e:
                raise RenderError(f"Unreadable PDF page: {e}", artifact.page_index) from e

        output = io.BytesIO()
        writer.write(output)
        merged = output.getvalue()

        self.logger.info("Pages merged", pages=len(self.pages), size=len(merged))
        return merged


def merge_pdf_pages(pages: List[RenderedArtifact]) -> bytes:
    """Merge PDF page artifacts in the order given."""
    aggregator = PageAggregator()
    for artifact in pages:
        aggregator.add(artifact)
    return aggregator.merge()
