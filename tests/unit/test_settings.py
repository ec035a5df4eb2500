"""
Unit Tests for Settings
=======================

Tests for environment configuration and cache directory resolution.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from drawio_export.config.settings import (
    PACKAGE_CACHE_DIR,
    Settings,
    get_settings,
    reload_settings,
    resolve_cache_dir,
)


class TestResolveCacheDir:
    """Test cache directory priority order."""

    @pytest.fixture
    def settings(self):
        return Settings(_env_file=None, cache_dir=None)

    @pytest.mark.parametrize(
        "environ,expected",
        [
            ({"XDG_CACHE_HOME": "/xdg", "HOME": "/home/user"}, Path("/xdg/drawio-export")),
            ({"XDG_CACHE_HOME": "/xdg"}, Path("/xdg/drawio-export")),
            ({"HOME": "/home/user"}, Path("/home/user/.cache/drawio-export")),
            ({}, PACKAGE_CACHE_DIR),
        ],
    )
    def test_environment_priority(self, settings, environ, expected):
        """Test every combination of XDG_CACHE_HOME and HOME."""
        assert resolve_cache_dir(settings, environ) == expected

    def test_empty_values_are_ignored(self, settings):
        environ = {"XDG_CACHE_HOME": "", "HOME": "/home/user"}
        assert resolve_cache_dir(settings, environ) == Path("/home/user/.cache/drawio-export")

    def test_explicit_setting_wins(self, tmp_path):
        settings = Settings(_env_file=None, cache_dir=tmp_path)
        environ = {"XDG_CACHE_HOME": "/xdg", "HOME": "/home/user"}

        assert resolve_cache_dir(settings, environ) == tmp_path

    def test_without_settings(self):
        assert resolve_cache_dir(None, {"HOME": "/root"}) == Path("/root/.cache/drawio-export")

    def test_resolution_is_stable(self, settings):
        environ = {"HOME": "/home/user"}
        assert resolve_cache_dir(settings, environ) == resolve_cache_dir(settings, environ)

    def test_package_fallback_location(self):
        assert PACKAGE_CACHE_DIR.name == ".cache"
        assert PACKAGE_CACHE_DIR.parent.name == "drawio_export"


class TestSettings:
    """Test settings loading and validation."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("CHROMIUM_PATH", raising=False)
        monkeypatch.delenv("DRAWIO_EXPORT_CHROMIUM_PATH", raising=False)
        settings = Settings(_env_file=None)

        assert settings.engine_url == "https://app.diagrams.net/export3.html"
        assert settings.chromium_path is None
        assert settings.playwright_headless is True

    def test_chromium_path_from_environment(self, monkeypatch):
        monkeypatch.setenv("CHROMIUM_PATH", "/usr/bin/chromium")
        assert Settings(_env_file=None).chromium_path == "/usr/bin/chromium"

    def test_prefixed_chromium_path_wins(self, monkeypatch):
        monkeypatch.setenv("CHROMIUM_PATH", "/usr/bin/chromium")
        monkeypatch.setenv("DRAWIO_EXPORT_CHROMIUM_PATH", "/opt/chrome")
        assert Settings(_env_file=None).chromium_path == "/opt/chrome"

    def test_cache_dir_from_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DRAWIO_EXPORT_CACHE_DIR", str(tmp_path))
        assert Settings(_env_file=None).cache_dir == tmp_path

    def test_log_level_upper_cased(self):
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="LOUD")

    def test_invalid_environment(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, environment="staging")

    def test_comma_separated_lists(self):
        settings = Settings(_env_file=None, allowed_hosts="a.test, b.test", api_keys="k1,k2")

        assert settings.allowed_hosts == ["a.test", "b.test"]
        assert settings.api_keys == ["k1", "k2"]

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_reload_settings_replaces_instance(self):
        before = get_settings()
        after = reload_settings()

        assert after is not before
        assert get_settings() is after
