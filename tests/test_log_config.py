"""Tests for structured log output."""

import json
import logging

from sfscan.utils.log_config import configure_logging

logger = logging.getLogger("sfscan.tests")


class TestConfigureLogging:
    """Test text and JSON rendering of sfscan log records."""

    def test_json_lines(self, capsys):
        configure_logging(level="info", log_format="json")
        logger.info("Unloading %s", "ORDERS")

        record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert record["event"] == "Unloading ORDERS"
        assert record["level"] == "info"
        assert record["logger"] == "sfscan.tests"
        assert "timestamp" in record

    def test_json_exception(self, capsys):
        configure_logging(level="info", log_format="json")
        try:
            raise ValueError("bad token")
        except ValueError:
            logger.exception("Conversion failed")

        record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert record["event"] == "Conversion failed"
        assert "ValueError: bad token" in record["exception"]

    def test_text(self, capsys):
        configure_logging(level="info", log_format="text")
        logger.info("Counted %d rows", 3)

        err = capsys.readouterr().err
        assert "Counted 3 rows" in err
        assert "sfscan.tests" in err
        assert not err.lstrip().startswith("{")

    def test_level(self, capsys):
        configure_logging(level="warning", log_format="json")
        logger.info("hidden")
        logger.warning("shown")

        err = capsys.readouterr().err
        assert "hidden" not in err
        assert "shown" in err
        assert not logging.getLogger("sfscan").propagate
