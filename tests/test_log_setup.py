"""
Tests for diagnostic logger construction.
"""

import builtins
import io

import pytest

from tracker_app import log_setup
from tracker_app.config import Settings
from tracker_app.log_setup import build_logger, diagnostic_logger


class TestBuildLogger:
    """Test the standalone logger"""

    def test_level_filtering(self):
        """Test records below the configured level are dropped"""
        stream = io.StringIO()
        logger = build_logger(level="WARNING", stream=stream)

        logger.info("quiet")
        logger.warning("loud", route="home")

        output = stream.getvalue()
        assert "quiet" not in output
        assert "loud" in output
        assert "route=home" in output

    def test_json_output(self):
        stream = io.StringIO()
        build_logger(json_output=True, stream=stream).info("hello")
        assert '"event": "hello"' in stream.getvalue()

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            build_logger(level="LOUD")


class TestDiagnosticLogger:
    """Test the settings-driven logger context"""

    def test_file_is_written_and_closed(self, tmp_path, monkeypatch):
        """Test the diagnostic log file is released when the context exits"""
        path = tmp_path / "diag.log"
        opened = []

        def tracking_open(*args, **kwargs):
            handle = builtins.open(*args, **kwargs)
            opened.append(handle)
            return handle

        monkeypatch.setattr(log_setup, "open", tracking_open, raising=False)
        settings = Settings(_env_file=None, diagnostic_log_path=str(path))

        with diagnostic_logger(settings) as logger:
            logger.warning("hello")
            assert not opened[0].closed

        assert len(opened) == 1
        assert opened[0].closed
        assert "hello" in path.read_text()

    def test_stdout_is_left_open(self, capsys):
        """Test logging to stdout does not close it"""
        settings = Settings(_env_file=None, diagnostic_log_path=None)

        with diagnostic_logger(settings) as logger:
            logger.warning("to stdout")

        assert "to stdout" in capsys.readouterr().out
