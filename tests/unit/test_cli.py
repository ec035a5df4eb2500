"""
Unit Tests for CLI
==================

Tests for the drawio-export command line interface.
"""

from unittest.mock import AsyncMock, Mock, patch

import pytest

from drawio_export.cli import build_parser, main
from drawio_export.core.exceptions import CacheFetchError, RenderError

from tests.utils.mocks import PNG_BYTES, MockResourceCache


@pytest.fixture
def mock_exporter(tmp_path):
    exporter = Mock()
    exporter.cache = MockResourceCache()
    exporter.cache.cache_dir = tmp_path / "cache"
    exporter.render = AsyncMock(return_value=PNG_BYTES)
    with patch("drawio_export.cli.get_exporter", return_value=exporter):
        yield exporter


@pytest.fixture
def diagram_file(tmp_path, single_page_xml):
    path = tmp_path / "diagram.drawio"
    path.write_text(single_page_xml, encoding="utf-8")
    return path


class TestCLI:
    """Test command dispatch."""

    def test_parser_defaults(self):
        args = build_parser().parse_args(["convert", "in.drawio"])

        assert args.format == "png"
        assert args.scale == 1.0
        assert args.border == 0
        assert args.output is None

    def test_convert_default_output(self, mock_exporter, diagram_file, capsys):
        assert main(["convert", str(diagram_file)]) == 0

        output = diagram_file.with_suffix(".png")
        assert output.read_bytes() == PNG_BYTES
        assert str(output) in capsys.readouterr().out

    def test_convert_cat_pdf(self, mock_exporter, diagram_file, tmp_path):
        output = tmp_path / "out.pdf"

        assert main(["convert", str(diagram_file), "-f", "cat-pdf", "-o", str(output), "--scale", "2"]) == 0

        _, format_string, options = mock_exporter.render.await_args.args
        assert format_string == "cat-pdf"
        assert options.scale == 2.0
        assert output.exists()

    def test_convert_invalid_format(self, mock_exporter, diagram_file, capsys):
        assert main(["convert", str(diagram_file), "-f", "svg"]) == 1

        assert "Invalid format: svg" in capsys.readouterr().err
        mock_exporter.render.assert_not_awaited()

    @pytest.mark.parametrize("flags", [["--scale", "0"], ["--border", "-2"]])
    def test_convert_invalid_options(self, mock_exporter, diagram_file, capsys, flags):
        assert main(["convert", str(diagram_file), *flags]) == 1

        err = capsys.readouterr().err
        assert err.startswith("Error: Invalid options")
        assert len(err.strip().splitlines()) == 1
        mock_exporter.render.assert_not_awaited()
        assert not diagram_file.with_suffix(".png").exists()

    def test_warm_cache_unwritable_directory(self, mock_exporter, capsys):
        mock_exporter.cache.ensure_all.side_effect = CacheFetchError(
            "https://app.diagrams.net/export3.html", "cache directory not writable"
        )

        assert main(["warm-cache"]) == 1
        assert "not writable" in capsys.readouterr().err

    def test_convert_render_error(self, mock_exporter, diagram_file, capsys):
        mock_exporter.render.side_effect = RenderError("engine crashed", page_index=0)

        assert main(["convert", str(diagram_file)]) == 1
        assert "Page 0: engine crashed" in capsys.readouterr().err

    def test_convert_missing_input(self, mock_exporter, tmp_path):
        assert main(["convert", str(tmp_path / "missing.drawio")]) == 1

    def test_warm_cache(self, mock_exporter, capsys):
        assert main(["warm-cache"]) == 0

        mock_exporter.cache.ensure_all.assert_awaited_once()
        assert "cache" in capsys.readouterr().out

    def test_serve(self):
        with patch("drawio_export.api.main.run_server") as run_server:
            assert main(["serve", "--port", "8080"]) == 0

        run_server.assert_called_once_with(None, 8080)
