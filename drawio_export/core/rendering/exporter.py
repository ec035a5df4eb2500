"""
Diagram Exporter
================

The render entry point: validates the format, warms the asset cache, runs a
render session and merges pages when concatenation is requested.
"""

from typing import Any, Callable, Dict, Optional, Union

from pydantic import ValidationError

from drawio_export.config.logging import get_logger
from drawio_export.config.settings import Settings, get_settings, resolve_cache_dir
from drawio_export.core.cache.resource_cache import ResourceCache
from drawio_export.core.exceptions import InvalidOptionsError
from drawio_export.core.format.parser import parse_format
from drawio_export.core.rendering.aggregator import PageAggregator
from drawio_export.core.rendering.session import RenderSession
from drawio_export.models.schemas import ExportOptions

logger = get_logger(__name__)

SessionFactory = Callable[[ResourceCache, Settings], RenderSession]


def build_options(options: Union[ExportOptions, Dict[str, Any], None] = None) -> ExportOptions:
    """
    Coerce caller supplied render options into ExportOptions.

    Raises:
        InvalidOptionsError: If a value is out of range or of the wrong type
    """
    if isinstance(options, ExportOptions):
        return options
    try:
        return ExportOptions(**(options or {}))
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        )
        raise InvalidOptionsError(f"Invalid options: {problems}") from e


class DiagramExporter:
    """Converts diagram XML into PNG or PDF bytes."""

    def __init__(
        self,
        cache: Optional[ResourceCache] = None,
        settings: Optional[Settings] = None,
        session_factory: SessionFactory = RenderSession,
    ):
        self.settings = settings or get_settings()
        self.cache = cache or ResourceCache(
            resolve_cache_dir(self.settings),
            fetch_timeout=self.settings.cache_fetch_timeout,
        )
        self._session_factory = session_factory
        self.logger: Any = logger.bind(component="exporter")

    async def render(
        self,
        document: str,
        format: str,
        options: Union[ExportOptions, Dict[str, Any], None] = None,
    ) -> bytes:
        """
        Render a diagram document.

        Args:
            document: Raw diagram XML
            format: Output format string, e.g. ``png``, ``pdf`` or ``cat-pdf``
            options: Scale and border forwarded to the engine

        Returns:
            PNG bytes, PDF bytes, or the merged PDF of every page

        Raises:
            InvalidFormatError: If the format string is malformed
            UnsupportedFormatError: If the format cannot be produced
            InvalidOptionsError: If scale or border is out of range
            CacheFetchError: If an engine asset cannot be downloaded
            RenderError: If the browser or the engine fails
        """
        directive = parse_format(format)
        options = build_options(options)

        self.logger.info(
            "Rendering diagram",
            format=directive.raw,
            scale=options.scale,
            border=options.border,
            xml_length=len(document),
        )

        await self.cache.ensure_all()

        async with self._session_factory(self.cache, self.settings) as session:
            pages = await session.load_document(document)

            if not directive.concatenate or pages == 1:
                artifact = await session.render_page(directive.core, 0, options)
                return artifact.data

            aggregator = PageAggregator()
            for page_index in range(pages):
                aggregator.add(await session.render_page(directive.core, page_index, options))

        return aggregator.merge()


# Global exporter instance
_default_exporter: Optional[DiagramExporter] = None


def get_exporter() -> DiagramExporter:
    """Get the global exporter, creating it from the global settings."""
    global _default_exporter
    if _default_exporter is None:
        _default_exporter = DiagramExporter()
    return _default_exporter


async def render(
    document: str,
    format: str = "png",
    options: Union[ExportOptions, Dict[str, Any], None] = None,
) -> bytes:
    """Render a diagram document with the global exporter."""
    return await get_exporter().render(document, format, options)
