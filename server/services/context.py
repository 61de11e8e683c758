"""Context window assembly: turn stored history plus a new prompt into model input."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Sequence

logger = logging.getLogger(__name__)

HISTORY_HEADER = "=== CONVERSATION HISTORY ==="
HISTORY_FOOTER = "=== END HISTORY ==="
ASSISTANT_CUE = "ASSISTANT:"


def _field(message: Any, name: str) -> str:
    if isinstance(message, dict):
        return str(message.get(name, ""))
    return str(getattr(message, name, ""))


def select_history_window(messages: Sequence[Any], max_messages: int) -> list:
    """Return at most the last *max_messages* of *messages* (oldest first)."""
    if max_messages <= 0:
        return []
    window = list(messages[-max_messages:])
    if len(window) < len(messages):
        logger.debug("History window dropped %d older messages", len(messages) - len(window))
    return window


def render_message(message: Any) -> str:
    """Render one message as ``ROLE: content``."""
    return f"{_field(message, 'role').upper()}: {_field(message, 'content')}"


def build_prompt(history: Iterable[Any], prompt: str, max_messages: int = 15) -> str:
    """Build a single text block for the completion provider.

    *history* is the conversation so far, oldest first, without the prompt
    being answered. Items may be ORM rows or mappings with ``role`` and
    ``content``. With no retained history the prompt is returned verbatim.

    Example output with one prior exchange::

        === CONVERSATION HISTORY ===
        USER: hi

        ASSISTANT: hello
        === END HISTORY ===

        USER: how are you?
        ASSISTANT:
    """
    window = select_history_window(list(history), max_messages)
    if not window:
        return prompt

    rendered = "\n\n".join(render_message(m) for m in window)
    return "\n".join([
        HISTORY_HEADER,
        rendered,
        HISTORY_FOOTER,
        "",
        f"USER: {prompt}",
        ASSISTANT_CUE,
    ])
