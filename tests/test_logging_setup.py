from __future__ import annotations

import io
import logging

import pytest

from spend_analysis.logging_setup import configure_logging, get_logger


def test_configure_once_and_emit_to_stream():
    buf = io.StringIO()
    configure_logging("DEBUG", fmt="%(levelname)s %(message)s", stream=buf)
    configure_logging("ERROR", stream=io.StringIO())  # ignored

    get_logger("spend_analysis.test").debug("hello")
    assert buf.getvalue() == "DEBUG hello\n"
    assert logging.getLogger("spend_analysis").propagate is False


@pytest.mark.parametrize(
    ("env", "expected"),
    [("WARNING", logging.WARNING), ("10", logging.DEBUG), ("nonsense", logging.INFO)],
)
def test_level_falls_back_to_env_then_info(monkeypatch, env, expected):
    monkeypatch.setenv("SPEND_ANALYSIS_LOG_LEVEL", env)
    configure_logging(stream=io.StringIO())
    assert logging.getLogger("spend_analysis").level == expected


def test_get_logger_installs_null_handler_when_unconfigured():
    logger = get_logger("spend_analysis.x")
    assert logger.name == "spend_analysis.x"
    handlers = logging.getLogger("spend_analysis").handlers
    assert any(isinstance(h, logging.NullHandler) for h in handlers)
