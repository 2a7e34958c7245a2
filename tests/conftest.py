"""Pytest configuration for test isolation.

The package reads a handful of ``SPEND_ANALYSIS_*`` settings (and
``OPENAI_API_KEY``) from the environment, and the CLI configures the package
logger once per process. Both leak between tests unless reset, so every test
starts from a clean environment and an unconfigured logger.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

import spend_analysis.logging_setup as logging_setup

_ENV_VARS = (
    "SPEND_ANALYSIS_LOG_LEVEL",
    "SPEND_ANALYSIS_MAX_WORKERS",
    "SPEND_ANALYSIS_PROFILE",
    "SPEND_ANALYSIS_OPENAI_MODEL",
    "OPENAI_API_KEY",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Keep CLI runs quiet; tests assert on printed output, not log lines.
    monkeypatch.setenv("SPEND_ANALYSIS_LOG_LEVEL", "CRITICAL")


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    logger = logging.getLogger("spend_analysis")
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    logging_setup._CONFIGURED = False
