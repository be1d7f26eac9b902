"""Tests for centralized logging behavior and configuration."""

import logging
from io import StringIO

import pytest

from nodesel.logging import (
    LOG_LEVEL_ENV,
    disable_debug_logging,
    enable_debug_logging,
    get_logger,
    reset_logging,
    set_global_log_level,
    setup_root_logger,
)


@pytest.fixture(autouse=True)
def _reset_logging_each_test(monkeypatch):
    """Reset logging state before and after each test to avoid cross-test bleed."""
    monkeypatch.delenv(LOG_LEVEL_ENV, raising=False)
    reset_logging()
    yield
    reset_logging()


def test_effective_levels_enable_disable():
    """INFO by default, DEBUG after enable, back to INFO after disable."""
    logger = get_logger("nodesel.test")

    capture = StringIO()
    handler = logging.StreamHandler(capture)
    handler.setLevel(logging.DEBUG)
    logger.handlers.clear()
    logger.addHandler(handler)

    logger.info("info-1")
    assert "info-1" in capture.getvalue()

    logger.debug("debug-1")
    assert "debug-1" not in capture.getvalue()

    enable_debug_logging()
    logger.debug("debug-2")
    assert "debug-2" in capture.getvalue()

    disable_debug_logging()
    logger.debug("debug-3")
    assert "debug-3" not in capture.getvalue()
    logger.handlers.clear()


def test_global_level_propagates_to_children():
    logger1 = get_logger("nodesel.model")
    logger2 = get_logger("nodesel.selectors")
    assert logger1.getEffectiveLevel() == logging.INFO

    set_global_log_level(logging.WARNING)
    assert logger1.getEffectiveLevel() == logging.WARNING
    assert logger2.getEffectiveLevel() == logging.WARNING
    assert get_logger("nodesel.new").getEffectiveLevel() == logging.WARNING


def test_setup_root_logger_idempotent():
    capture = StringIO()
    setup_root_logger(level=logging.INFO, handler=logging.StreamHandler(capture))
    root_logger = logging.getLogger("nodesel")
    assert len(root_logger.handlers) == 1

    setup_root_logger(level=logging.DEBUG)
    assert len(root_logger.handlers) == 1
    assert root_logger.level == logging.INFO


def test_custom_format_string_applied():
    capture = StringIO()
    fmt = "LEVEL:%(levelname)s|NAME:%(name)s|MSG:%(message)s"
    setup_root_logger(level=logging.INFO, format_string=fmt, handler=logging.StreamHandler(capture))

    get_logger("nodesel.test.format").info("hello")
    out = capture.getvalue()
    assert "LEVEL:INFO" in out
    assert "NAME:nodesel.test.format" in out
    assert "MSG:hello" in out


@pytest.mark.parametrize(
    "env_value, expected",
    [("debug", logging.DEBUG), ("WARNING", logging.WARNING), ("bogus", logging.INFO)],
)
def test_level_from_environment(monkeypatch, env_value, expected):
    monkeypatch.setenv(LOG_LEVEL_ENV, env_value)
    setup_root_logger(handler=logging.StreamHandler(StringIO()))
    assert logging.getLogger("nodesel").level == expected


def test_evaluator_reports_unmatched_criteria(caplog, bronze_universe):
    """An exclude matching nothing is logged at DEBUG, not treated as an error."""
    from nodesel.selectors import evaluate, exclude, intersection

    enable_debug_logging()
    expr = intersection(
        "path:models/test_exclude/bronze/bronze_*",
        exclude("path:models/test_exclude/bronse/no_such_model_*"),
    )
    with caplog.at_level(logging.DEBUG, logger="nodesel"):
        result = evaluate(expr, bronze_universe)

    assert len(result) == 3
    messages = [r.getMessage() for r in caplog.records]
    assert any("bronse/no_such_model_*' matched no nodes" in m for m in messages)
    assert any("Selected 3 of 3 nodes" in m for m in messages)
    assert not any(r.levelno >= logging.WARNING for r in caplog.records)
