"""
Test Configuration
==================

Pytest configuration with fixtures shared by unit and integration tests.
"""

import os

os.environ.setdefault("DRAWIO_EXPORT_ENVIRONMENT", "testing")

from pathlib import Path
from typing import Generator

import pytest

from drawio_export.config.settings import Settings
from drawio_export.core.cache.resource_cache import ResourceCache
from drawio_export.models.schemas import CachedResource, ExportOptions
from tests.utils.data_generators import DiagramDataGenerator
from tests.utils.mocks import FakeRenderSession


class TestSettings(Settings):
    """Test-specific settings."""

    environment: str = "testing"
    debug: bool = False
    log_level: str = "DEBUG"
    api_keys: list[str] = ["test-api-key-123"]
    chromium_path: str | None = None
    playwright_timeout: int = 5000


@pytest.fixture
def test_settings(tmp_path: Path) -> TestSettings:
    """Test settings fixture with an isolated cache directory."""
    return TestSettings(_env_file=None, cache_dir=tmp_path / "cache")


@pytest.fixture
def sample_manifest() -> list[CachedResource]:
    """Two-entry manifest, one nested."""
    return [
        CachedResource(url="https://example.test/export3.html", name="export3.html"),
        CachedResource(url="https://example.test/js/app.min.js?v=1", name="js/app.min.js"),
    ]


@pytest.fixture
def resource_cache(tmp_path: Path, sample_manifest: list[CachedResource]) -> ResourceCache:
    """Resource cache rooted in a temporary directory."""
    return ResourceCache(tmp_path / "cache", manifest=sample_manifest)


@pytest.fixture
def export_options() -> ExportOptions:
    return ExportOptions(scale=2, border=10)


@pytest.fixture
def single_page_xml() -> str:
    return DiagramDataGenerator.generate_document(pages=1)


@pytest.fixture
def three_page_xml() -> str:
    return DiagramDataGenerator.generate_document(pages=3)


@pytest.fixture(autouse=True)
def reset_fake_sessions() -> Generator[None, None, None]:
    """Forget fake sessions created by previous tests."""
    FakeRenderSession.instances.clear()
    yield
    FakeRenderSession.instances.clear()
