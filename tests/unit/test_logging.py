"""Unit tests for logging setup and context binding."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest
import structlog

from ua_address_space.config.schema import LogLevel
from ua_address_space.observability.logging import LogContext, get_logger, setup_logging

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    root_level = logging.getLogger().level
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    logging.getLogger().setLevel(root_level)


def test_level_from_argument() -> None:
    setup_logging("warning", "json")
    assert logging.getLogger().level == logging.WARNING


def test_level_from_enum() -> None:
    setup_logging(LogLevel.ERROR)
    assert logging.getLogger().level == logging.ERROR


def test_level_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("UA_LOG_LEVEL", "DEBUG")
    setup_logging()
    assert logging.getLogger().level == logging.DEBUG


def test_unknown_level_falls_back_to_info() -> None:
    setup_logging("CHATTY")
    assert logging.getLogger().level == logging.INFO


def test_get_logger_binds() -> None:
    setup_logging("INFO", "console")
    logger = get_logger("ua_address_space.test")
    assert logger.bind(document="a.xml") is not None


def test_log_context_binds_and_unbinds() -> None:
    with LogContext(document="a.xml"):
        assert structlog.contextvars.get_contextvars() == {"document": "a.xml"}
    assert structlog.contextvars.get_contextvars() == {}


def test_nested_log_context_restores_outer_value() -> None:
    with LogContext(document="outer.xml"):
        with LogContext(document="inner.xml", node="ns=1;i=1"):
            assert structlog.contextvars.get_contextvars() == {"document": "inner.xml", "node": "ns=1;i=1"}
        assert structlog.contextvars.get_contextvars() == {"document": "outer.xml"}
