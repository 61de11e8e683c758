"""Tests for the unified logging configuration."""

from __future__ import annotations

import logging

import pytest


@pytest.fixture(autouse=True)
def _clean_root_logger():
    """Remove any handlers we add during tests so they don't leak."""
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    yield
    root.handlers = before
    root.setLevel(level)


# ── ContextFilter tests ────────────────────────────────────────────────────


def test_context_filter_stamps_role():
    from logging_config import ContextFilter

    f = ContextFilter("Server")
    record = logging.LogRecord("test", logging.INFO, "", 0, "msg", (), None)
    f.filter(record)
    assert record.role == "Server"  # type: ignore[attr-defined]
    assert record.request_id == ""  # type: ignore[attr-defined]


def test_context_filter_reads_request_id():
    from logging_config import ContextFilter, request_id_var

    f = ContextFilter("Server")
    token = request_id_var.set("req-abcdef123")
    try:
        record = logging.LogRecord("test", logging.INFO, "", 0, "msg", (), None)
        f.filter(record)
        assert record.request_id == "req-abcdef123"  # type: ignore[attr-defined]
    finally:
        request_id_var.reset(token)


# ── ContextFormatter tests ─────────────────────────────────────────────────


def test_formatter_without_request():
    from logging_config import ContextFormatter

    record = logging.LogRecord("services.llm", logging.INFO, "", 12, "hello %s", ("world",), None)
    record.role = "Server"
    record.request_id = ""
    line = ContextFormatter().format(record)
    assert "[Server][INFO] services.llm:12 - hello world" in line
    assert "[Req" not in line


def test_formatter_truncates_request_id():
    from logging_config import ContextFormatter

    record = logging.LogRecord("api.generate", logging.WARNING, "", 3, "slow", (), None)
    record.role = "Server"
    record.request_id = "0123456789abcdef"
    line = ContextFormatter().format(record)
    assert "[Server][Req 01234567][WARNING]" in line


def test_formatter_includes_exception():
    from logging_config import ContextFormatter

    try:
        raise ValueError("kaboom")
    except ValueError:
        import sys
        record = logging.LogRecord("x", logging.ERROR, "", 1, "failed", (), sys.exc_info())
    line = ContextFormatter().format(record)
    assert "ValueError: kaboom" in line


# ── setup_logging tests ────────────────────────────────────────────────────


def test_setup_logging_idempotent():
    from logging_config import setup_logging

    setup_logging("Server")
    setup_logging("Server")
    names = [getattr(h, "name", None) for h in logging.getLogger().handlers]
    assert names.count("_chat_relay_stream") == 1


def test_setup_logging_file_handler(tmp_path, monkeypatch):
    from config import settings
    from logging_config import setup_logging

    log_file = tmp_path / "logs" / "server.log"
    monkeypatch.setattr(settings, "LOG_FILE", str(log_file))
    root = logging.getLogger()
    root.handlers = [h for h in root.handlers if not (h.name or "").startswith("_chat_relay")]

    setup_logging("Server")
    names = [getattr(h, "name", None) for h in root.handlers]
    assert "_chat_relay_file" in names
    assert log_file.parent.exists()
    for h in root.handlers:
        if getattr(h, "name", None) == "_chat_relay_file":
            h.close()


def test_setup_logging_tames_provider_loggers():
    from logging_config import setup_logging

    root = logging.getLogger()
    root.handlers = [h for h in root.handlers if not (h.name or "").startswith("_chat_relay")]
    setup_logging("Server")
    assert logging.getLogger("openai").level == logging.WARNING
    assert logging.getLogger("httpx").level == logging.WARNING
