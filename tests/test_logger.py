import json

import pytest

from commodity_analytics.utils.logger import LoggingOptions, get_logger, setup_logger


def file_options(path, **kwargs):
    return LoggingOptions(file=str(path), console=False, **kwargs)


class TestLogger:
    def test_setup_logger_creates_file(self, tmp_path):
        """Test the log file is created and written."""
        log_file = tmp_path / "test.log"
        setup_logger(file_options(log_file, level="DEBUG"))

        logger = get_logger("test")
        logger.info("test message")

        assert log_file.exists()
        content = log_file.read_text()
        assert "test message" in content

    def test_get_logger_returns_named_logger(self):
        """Test the returned logger carries the module name."""
        logger = get_logger("my_module")
        assert logger is not None

    def test_logger_levels(self, tmp_path):
        """Test level filtering."""
        log_file = tmp_path / "level_test.log"
        setup_logger(file_options(log_file, level="warning"))

        logger = get_logger("level_test")
        logger.debug("debug msg")
        logger.info("info msg")
        logger.warning("warning msg")
        logger.error("error msg")

        content = log_file.read_text()
        assert "debug msg" not in content
        assert "info msg" not in content
        assert "warning msg" in content
        assert "error msg" in content

    def test_setup_twice_replaces_sinks(self, tmp_path):
        """Test a second setup stops writing to the first file."""
        first = tmp_path / "first.log"
        second = tmp_path / "second.log"
        setup_logger(file_options(first))
        setup_logger(file_options(second))

        get_logger("rotate").info("only in second")

        assert "only in second" in second.read_text()
        assert not first.exists() or "only in second" not in first.read_text()

    def test_serialized_file(self, tmp_path):
        """Test serialize writes one JSON record per line."""
        log_file = tmp_path / "json.log"
        setup_logger(file_options(log_file, serialize=True))

        get_logger("json").info("structured")

        record = json.loads(log_file.read_text().splitlines()[-1])
        assert record["record"]["message"] == "structured"

    def test_console_only(self, capsys):
        """Test no file sink is installed when file is empty."""
        ids = setup_logger(LoggingOptions(file=None, console=True))
        get_logger("console").info("to stderr")

        assert len(ids) == 1
        assert "to stderr" in capsys.readouterr().err

    def test_unknown_level(self, tmp_path):
        with pytest.raises(ValueError):
            setup_logger(file_options(tmp_path / "x.log", level="LOUD"))
