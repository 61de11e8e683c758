"""Process-wide logging for the chat relay server.

``setup_logging("Server")`` runs once from the FastAPI lifespan. After that every
module logs through ``logging.getLogger(__name__)`` and each line carries the
process role and, inside a request, the id the HTTP middleware put in
``request_id_var``::

    2026-02-17 14:30:01 [Server][Req 1a2b3c4d][INFO] services.conversations:118 - Generating reply
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from contextvars import ContextVar
from pathlib import Path

request_id_var: ContextVar[str] = ContextVar("request_id_var", default="")

STREAM_HANDLER_NAME = "_chat_relay_stream"
FILE_HANDLER_NAME = "_chat_relay_file"

# Chatty at INFO: one line per HTTP round trip to the provider.
QUIET_LOGGERS = ("httpx", "httpcore", "urllib3", "openai", "anthropic")
UVICORN_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")


class ContextFilter(logging.Filter):
    """Copies the process role and current request id onto every record."""

    def __init__(self, role: str) -> None:
        super().__init__()
        self.role = role

    def filter(self, record: logging.LogRecord) -> bool:
        record.role = self.role  # type: ignore[attr-defined]
        record.request_id = request_id_var.get("")  # type: ignore[attr-defined]
        return True


class ContextFormatter(logging.Formatter):
    """``<time> [Role][Req xxxxxxxx][LEVEL] logger:line - message``.

    The request tag is left out for records logged outside a request.
    """

    REQUEST_ID_CHARS = 8

    def _tags(self, record: logging.LogRecord) -> str:
        tags = []
        role = getattr(record, "role", "")
        if role:
            tags.append(role)
        request_id = getattr(record, "request_id", "")
        if request_id:
            tags.append(f"Req {request_id[:self.REQUEST_ID_CHARS]}")
        tags.append(record.levelname)
        return "".join(f"[{t}]" for t in tags)

    def format(self, record: logging.LogRecord) -> str:
        line = "{} {} {}:{} - {}".format(
            self.formatTime(record, self.datefmt),
            self._tags(record),
            record.name,
            record.lineno,
            record.getMessage(),
        )
        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        extras = [text for text in (record.exc_text, record.stack_info) if text]
        return "\n".join([line, *extras])


def _has_handler(logger: logging.Logger, name: str) -> bool:
    return any(h.name == name for h in logger.handlers)


def setup_logging(role: str) -> None:
    """Install the relay's handlers on the root logger.

    A stderr handler is always added; a size-rotated file handler only when
    ``LOG_FILE`` is configured. Calling this again is a no-op.
    """
    from config import settings

    root = logging.getLogger()
    if _has_handler(root, STREAM_HANDLER_NAME):
        return

    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    context = ContextFilter(role)
    formatter = ContextFormatter(datefmt="%Y-%m-%d %H:%M:%S")

    handlers: list[logging.Handler] = []
    stream = logging.StreamHandler(sys.stderr)
    stream.name = STREAM_HANDLER_NAME
    handlers.append(stream)

    if settings.LOG_FILE:
        log_path = Path(settings.LOG_FILE)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        rotating = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=settings.LOG_MAX_BYTES,
            backupCount=settings.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        rotating.name = FILE_HANDLER_NAME
        handlers.append(rotating)

    for handler in handlers:
        handler.addFilter(context)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    # uvicorn installs its own handlers; route its records through ours instead.
    if "server" in role.lower():
        for name in UVICORN_LOGGERS:
            uv = logging.getLogger(name)
            uv.handlers.clear()
            uv.propagate = True
