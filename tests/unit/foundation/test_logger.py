"""Unit tests for storage_fixture.foundation.logger.

Run with: pytest tests/unit/foundation/test_logger.py
"""

import json
import logging
import sys
from unittest.mock import patch

from storage_fixture.foundation.logger import LOGGING_CONFIG, CustomJSONFormatter, configure_logging


def _record(msg: str = "Started docker image %s", args: tuple = ("es",), exc_info=None, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="storage_fixture.container",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=args,
        exc_info=exc_info,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestCustomJSONFormatter:
    """Test suite for CustomJSONFormatter."""

    def test_formats_standard_fields(self) -> None:
        output = json.loads(CustomJSONFormatter(fmt="%(asctime)s").format(_record()))

        assert output["level"] == "INFO"
        assert output["logger_name"] == "storage_fixture.container"
        assert output["message"] == "Started docker image es"
        assert output["line"] == 10
        assert "time" in output

    def test_includes_extra_attributes(self) -> None:
        output = json.loads(CustomJSONFormatter(fmt="%(asctime)s").format(_record(image="es", base_url="http://x")))

        assert output["image"] == "es"
        assert output["base_url"] == "http://x"
        assert "msg" not in output
        assert "args" not in output

    def test_includes_exception_trace(self) -> None:
        try:
            raise RuntimeError("daemon went away")
        except RuntimeError:
            exc_info = sys.exc_info()

        output = json.loads(CustomJSONFormatter(fmt="%(asctime)s").format(_record(exc_info=exc_info)))

        assert output["error"]["type"] == "RuntimeError"
        assert output["error"]["message"] == "daemon went away"
        assert "Traceback" in output["error"]["trace"]

    def test_non_serializable_extra_is_stringified(self) -> None:
        output = json.loads(CustomJSONFormatter(fmt="%(asctime)s").format(_record(handle=object())))

        assert output["handle"].startswith("<object object")


class TestConfigureLogging:
    """Test suite for configure_logging."""

    def test_applies_level_to_fixture_and_root_loggers(self) -> None:
        with patch("storage_fixture.foundation.logger.logging.config.dictConfig") as dict_config:
            configure_logging("DEBUG")

        (config,) = dict_config.call_args.args
        assert config["loggers"]["storage_fixture"]["level"] == "DEBUG"
        assert config["root"]["level"] == "DEBUG"
        assert config["loggers"]["testcontainers"]["level"] == "WARNING"

    def test_does_not_mutate_base_config(self) -> None:
        with patch("storage_fixture.foundation.logger.logging.config.dictConfig"):
            configure_logging("ERROR")

        assert LOGGING_CONFIG["loggers"]["storage_fixture"]["level"] == "INFO"
        assert LOGGING_CONFIG["root"]["level"] == "INFO"
