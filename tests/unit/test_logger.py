"""Test structured logging setup and session correlation."""

import json
import logging

import pytest

from gateway_events.observability.logger import get_session_id, set_session_id, setup_logging


@pytest.fixture(autouse=True)
def _restore_root_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    set_session_id("")
    yield
    set_session_id("")
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSetupLogging:
    def test_json_lines_carry_session_id(self, capsys):
        setup_logging(level="INFO", format="json")
        set_session_id("abc123")
        logging.getLogger("gateway_events.test").warning("Dropping %s", "event")

        record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert record["event"] == "Dropping event"
        assert record["level"] == "warning"
        assert record["logger"] == "gateway_events.test"
        assert record["session_id"] == "abc123"

    def test_level_filters(self, capsys):
        setup_logging(level="WARNING", format="json")
        logging.getLogger("gateway_events.test").info("quiet")
        assert capsys.readouterr().err == ""

    def test_console_format(self, capsys):
        setup_logging(level="DEBUG", format="console")
        logging.getLogger("gateway_events.test").debug("hello console")
        assert "hello console" in capsys.readouterr().err


class TestSessionId:
    def test_default_is_empty(self):
        assert get_session_id() == ""

    def test_set_and_get(self):
        set_session_id("s-1")
        assert get_session_id() == "s-1"
