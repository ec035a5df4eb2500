"""
Render Session
==============

One headless Chromium instance driving the diagrams.net export page.
Loads the engine with its assets served from the resource cache, injects a
diagram document and captures each page as PNG or PDF.
"""

import json
from types import TracebackType
from typing import Any, Callable, Optional, Type

from playwright.async_api import (
    Browser,
    Error as PlaywrightError,
    Page,
    Playwright,
    Route,
    async_playwright,
)
from pydantic import ValidationError

from drawio_export.config.logging import get_logger
from drawio_export.config.settings import Settings, get_settings
from drawio_export.core.cache.resource_cache import ResourceCache
from drawio_export.core.exceptions import RenderError
from drawio_export.models.schemas import ContentBounds, CoreKind, ExportOptions, RenderedArtifact

logger = get_logger(__name__)

COMPLETION_MARKER = "#LoadingComplete"

PARSE_DOCUMENT_JS = "(xml) => { window.doc = mxUtils.parseXml(xml); }"

PAGE_COUNT_JS = "() => window.doc.documentElement.getAttribute('pages') || 1"

# Moves the leading nodes of the parsed root, up to and including the first
# element, into a shallow copy of the root and renders that copy. The moved
# nodes leave the parsed document, so successive calls walk the pages in order.
RENDER_NEXT_PAGE_JS = """
(options) => {
    const root = window.doc.documentElement;
    const page = root.cloneNode(false);
    while (root.firstChild) {
        const node = root.firstChild;
        page.appendChild(node);
        if (node.nodeType === Node.ELEMENT_NODE) {
            document.querySelectorAll('#LoadingComplete').forEach((el) => el.remove());
            options.xml = page.outerHTML;
            render(options);
            return true;
        }
    }
    return false;
}
"""

READ_BOUNDS_JS = "(marker) => marker.getAttribute('bounds')"


class RenderSession:
    """Single-use browser session bound to one diagram document."""

    def __init__(
        self,
        cache: ResourceCache,
        settings: Optional[Settings] = None,
        playwright_factory: Callable[[], Any] = async_playwright,
    ):
        self.cache = cache
        self.settings = settings or get_settings()
        self._playwright_factory = playwright_factory
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._page: Optional[Page] = None
        self._closed = False
        self.page_count: Optional[int] = None
        self.logger: Any = logger.bind(component="render_session")

    @property
    def is_open(self) -> bool:
        return self._page is not None and not self._closed

    async def __aenter__(self) -> "RenderSession":
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        await self.close()

    async def open(self) -> None:
        """
        Launch the browser and load the diagram engine.

        Raises:
            RenderError: If the browser cannot start or the engine page fails to load
        """
        if self._closed:
            raise RenderError("Render session already closed")

        try:
            self._playwright = await self._playwright_factory().start()
            self._browser = await self._playwright.chromium.launch(
                executable_path=self.settings.chromium_path,
                headless=self.settings.playwright_headless,
                args=["--no-sandbox"],
            )
            self.logger.info("Browser launched", executable=self.settings.chromium_path)

            page = await self._browser.new_page()
            page.set_default_timeout(self.settings.playwright_timeout)
            await page.route("**/*", self._serve_cached)
            await page.goto(self.settings.engine_url, wait_until="networkidle")
            self._page = page
        except PlaywrightError as e:
            await self.close()
            raise RenderError(f"Failed to load diagram engine: {e}") from e
        except BaseException:
            await self.close()
            raise

        self.logger.debug("Diagram engine loaded", url=self.settings.engine_url)

    async def _serve_cached(self, route: Route) -> None:
        """Fulfil requests for cached assets from disk, pass everything else through."""
        url = route.request.url
        resource = self.cache.lookup(url)
        if resource is None:
            await route.continue_()
            return

        try:
            body = self.cache.read(resource)
        except OSError as e:
            self.logger.warning("Cached asset unreadable, aborting request", url=url, error=str(e))
            await route.abort()
            return

        await route.fulfill(status=200, body=body, content_type=resource.content_type)

    def _require_page(self) -> Page:
        if not self.is_open:
            raise RenderError("Render session is not open")
        return self._page  # type: ignore[return-value]

    async def load_document(self, xml: str) -> int:
        """
        Parse a diagram document inside the engine.

        Args:
            xml: Raw diagram XML, passed through unmodified

        Returns:
            Number of pages reported by the document root
        """
        page = self._require_page()
        try:
            await page.evaluate(PARSE_DOCUMENT_JS, xml)
            pages = await page.evaluate(PAGE_COUNT_JS)
        except PlaywrightError as e:
            raise RenderError(f"Failed to parse diagram document: {e}") from e

        try:
            self.page_count = max(1, int(pages))
        except (TypeError, ValueError):
            self.page_count = 1

        self.logger.info("Diagram document loaded", pages=self.page_count, xml_length=len(xml))
        return self.page_count

    async def render_page(
        self, kind: CoreKind, page_index: int, options: ExportOptions
    ) -> RenderedArtifact:
        """
        Render the next page of the loaded document and capture it.

        Pages are consumed in document order; ``page_index`` identifies the
        page for logging and error reporting.

        Raises:
            RenderError: If the engine or the capture fails
        """
        page = self._require_page()
        engine_options = {
            "format": "png",
            "w": 0,
            "h": 0,
            "border": options.border,
            "bg": "none",
            "scale": options.scale,
        }

        try:
            rendered = await page.evaluate(RENDER_NEXT_PAGE_JS, engine_options)
            if not rendered:
                raise RenderError("Document has no page left to render", page_index)

            await page.wait_for_selector(COMPLETION_MARKER, state="attached")
            bounds_json = await page.eval_on_selector(COMPLETION_MARKER, READ_BOUNDS_JS)
            bounds = self._parse_bounds(bounds_json, page_index)

            viewport = bounds.viewport
            await page.set_viewport_size(viewport)
            data = await self._capture(page, kind, viewport)
        except PlaywrightError as e:
            raise RenderError(str(e), page_index) from e

        self.logger.info(
            "Page rendered",
            page_index=page_index,
            kind=kind.value,
            width=viewport["width"],
            height=viewport["height"],
            size=len(data),
        )

        return RenderedArtifact(
            data=data,
            kind=kind,
            page_index=page_index,
            width=viewport["width"],
            height=viewport["height"],
        )

    @staticmethod
    def _parse_bounds(bounds_json: Optional[str], page_index: int) -> ContentBounds:
        if not bounds_json:
            raise RenderError("Engine reported no content bounds", page_index)
        try:
            return ContentBounds(**json.loads(bounds_json))
        except (json.JSONDecodeError, TypeError, ValidationError) as e:
            raise RenderError(f"Unreadable content bounds {bounds_json!r}", page_index) from e

    @staticmethod
    async def _capture(page: Page, kind: CoreKind, viewport: dict) -> bytes:
        if kind is CoreKind.PNG:
            return await page.screenshot(type="png", full_page=True, omit_background=True)

        # One extra pixel of height keeps the bottom edge off the next PDF page
        return await page.pdf(
            print_background=False,
            width=f"{viewport['width']}px",
            height=f"{viewport['height'] + 1}px",
            margin={"top": "0px", "bottom": "0px", "left": "0px", "right": "0px"},
        )

    async def close(self) -> None:
        """Stop the browser and the Playwright driver. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True

        # Shutdown failures are logged, never raised
        browser, self._browser, self._page = self._browser, None, None
        if browser is not None:
            try:
                await browser.close()
            except PlaywrightError as e:
                self.logger.warning("Browser close failed", error=str(e))

        playwright, self._playwright = self._playwright, None
        if playwright is not None:
            try:
                await playwright.stop()
            except PlaywrightError as e:
                self.logger.warning("Playwright stop failed", error=str(e))

        self.logger.info("Browser closed")
