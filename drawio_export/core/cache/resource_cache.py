"""
Resource Cache
==============

Local mirror of the remote assets the diagram engine loads at startup.
Assets are fetched once with streamed aiohttp downloads and served to the
browser from disk afterwards.
"""

import asyncio
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import aiohttp

from drawio_export.config.logging import get_logger
from drawio_export.core.exceptions import CacheFetchError
from drawio_export.models.schemas import CachedResource

logger = get_logger(__name__)

CHUNK_SIZE = 64 * 1024

DEFAULT_MANIFEST: Tuple[CachedResource, ...] = (
    CachedResource(url="https://app.diagrams.net/export3.html", name="export3.html"),
    CachedResource(url="https://app.diagrams.net/js/app.min.js", name="app.min.js"),
    CachedResource(
        url="https://cdnjs.cloudflare.com/ajax/libs/mathjax/2.7.5/MathJax.js"
        "?config=TeX-MML-AM_HTMLorMML",
        name="MathJax.js",
    ),
    CachedResource(
        url="https://cdnjs.cloudflare.com/ajax/libs/mathjax/2.7.5/config/"
        "TeX-MML-AM_HTMLorMML.js?V=2.7.5",
        name="TeX-MML-AM_HTMLorMML.js",
    ),
    CachedResource(
        url="https://cdn.mathjax.org/mathjax/contrib/a11y/accessibility-menu.js?V=2.7.5",
        name="accessibility-menu.js",
    ),
)


class ResourceCache:
    """Fetch-once cache for the engine assets."""

    def __init__(
        self,
        cache_dir: Path,
        manifest: Iterable[CachedResource] = DEFAULT_MANIFEST,
        session_factory: Optional[Callable[[], aiohttp.ClientSession]] = None,
        fetch_timeout: float = 60,
    ):
        self.cache_dir = Path(cache_dir)
        self._resources: Dict[str, CachedResource] = {r.url: r for r in manifest}
        self._session_factory = session_factory or self._default_session
        self._fetch_timeout = fetch_timeout
        self._locks: Dict[str, asyncio.Lock] = {}
        self._locks_loop: Optional[asyncio.AbstractEventLoop] = None
        self.logger: Any = logger.bind(component="resource_cache")

    @property
    def manifest(self) -> List[CachedResource]:
        return list(self._resources.values())

    def lookup(self, url: str) -> Optional[CachedResource]:
        """Return the cached resource registered for a remote URL, if any."""
        return self._resources.get(url)

    def path_for(self, resource: CachedResource) -> Path:
        return self.cache_dir / resource.name

    def exists(self, resource: CachedResource) -> bool:
        return self.path_for(resource).is_file()

    def read(self, resource: CachedResource) -> bytes:
        """
        Read a cached resource.

        Raises:
            OSError: If the file is missing or unreadable
        """
        return self.path_for(resource).read_bytes()

    def _default_session(self) -> aiohttp.ClientSession:
        timeout = aiohttp.ClientTimeout(total=self._fetch_timeout)
        return aiohttp.ClientSession(timeout=timeout)

    def _lock_for(self, resource: CachedResource) -> asyncio.Lock:
        # Locks bind to the loop they are contended on, so start over on a new loop
        loop = asyncio.get_running_loop()
        if self._locks_loop is not loop:
            self._locks = {}
            self._locks_loop = loop
        return self._locks.setdefault(resource.name, asyncio.Lock())

    async def ensure(
        self, resource: CachedResource, session: Optional[aiohttp.ClientSession] = None
    ) -> Path:
        """
        Make sure a resource is present in the cache, fetching it if needed.

        Args:
            resource: Resource to ensure
            session: Optional shared HTTP session

        Returns:
            Local path of the resource

        Raises:
            CacheFetchError: If the download fails
        """
        path = self.path_for(resource)
        if path.is_file():
            self.logger.debug("Cache hit", resource=resource.name)
            return path

        async with self._lock_for(resource):
            # Another caller may have completed the fetch while we waited
            if path.is_file():
                return path

            if session is None:
                async with self._session_factory() as own_session:
                    await self._fetch(resource, own_session, path)
            else:
                await self._fetch(resource, session, path)

        return path

    async def _fetch(
        self, resource: CachedResource, session: aiohttp.ClientSession, path: Path
    ) -> None:
        """Stream a resource into a temp file and move it into place."""
        self.logger.info("Fetching engine asset", url=resource.url, resource=resource.name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=path.parent, prefix=f".{path.name}.", suffix=".part"
            )
        except OSError as e:
            self.logger.error("Cache directory not writable", cache_dir=str(path.parent), error=str(e))
            raise CacheFetchError(resource.url, f"cache directory not writable: {e}") from e

        try:
            with os.fdopen(fd, "wb") as fh:
                async with session.get(resource.url) as response:
                    response.raise_for_status()
                    async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                        fh.write(chunk)
            os.replace(tmp_name, path)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            self._discard(tmp_name)
            self.logger.error("Engine asset fetch failed", url=resource.url, error=str(e))
            raise CacheFetchError(resource.url, str(e) or type(e).__name__) from e
        except BaseException:
            self._discard(tmp_name)
            raise

        self.logger.info("Engine asset cached", resource=resource.name, size=path.stat().st_size)

    @staticmethod
    def _discard(tmp_name: str) -> None:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass

    async def ensure_all(self) -> None:
        """
        Ensure every manifest entry concurrently.

        Raises:
            CacheFetchError: The first failure, once every fetch has settled
        """
        missing = [r for r in self._resources.values() if not self.exists(r)]
        if not missing:
            return

        async with self._session_factory() as session:
            results = await asyncio.gather(
                *(self.ensure(resource, session) for resource in missing),
                return_exceptions=True,
            )

        for result in results:
            if isinstance(result, BaseException):
                raise result
