"""Conversation lifecycle: ownership-checked CRUD and reply generation."""

from __future__ import annotations

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from errors import ConversationNotFound, ValidationFailed
from models._time import utcnow
from models.conversation import DEFAULT_TITLE, ROLE_ASSISTANT, ROLE_USER, Conversation, Message
from models.user import User
from services.context import build_prompt

logger = logging.getLogger(__name__)


def get_owned_conversation(db: Session, conversation_id: str, user: User) -> Conversation:
    """Look up a conversation by id, checking it belongs to *user*.

    Absent and foreign conversations both raise ConversationNotFound so
    callers cannot probe for ids they don't own.
    """
    conv = (
        db.query(Conversation)
        .filter(Conversation.id == conversation_id, Conversation.user_id == user.id)
        .first()
    )
    if not conv:
        raise ConversationNotFound(conversation_id)
    return conv


def list_conversations(db: Session, user: User) -> list[Conversation]:
    return (
        db.query(Conversation)
        .filter(Conversation.user_id == user.id)
        .order_by(Conversation.updated_at.desc(), Conversation.created_at.desc())
        .all()
    )


def latest_message(db: Session, conversation: Conversation) -> Message | None:
    return (
        db.query(Message)
        .filter(Message.conversation_id == conversation.id)
        .order_by(Message.seq.desc(), Message.created_at.desc())
        .first()
    )


def create_conversation(db: Session, user: User, title: str | None = None) -> Conversation:
    conv = Conversation(user_id=user.id, title=(title or "").strip() or DEFAULT_TITLE)
    db.add(conv)
    db.commit()
    db.refresh(conv)
    logger.info("Created conversation %s", conv.id)
    return conv


def list_messages(db: Session, conversation_id: str, user: User) -> list[Message]:
    conv = get_owned_conversation(db, conversation_id, user)
    return (
        db.query(Message)
        .filter(Message.conversation_id == conv.id)
        .order_by(Message.seq.asc(), Message.created_at.asc())
        .all()
    )


def rename_conversation(db: Session, conversation_id: str, user: User, title: str | None) -> Conversation:
    conv = get_owned_conversation(db, conversation_id, user)
    trimmed = title.strip() if isinstance(title, str) else ""
    if not trimmed:
        raise ValidationFailed("Title is required and cannot be empty")
    conv.title = trimmed
    db.commit()
    db.refresh(conv)
    return conv


def delete_conversation(db: Session, conversation_id: str, user: User) -> None:
    conv = get_owned_conversation(db, conversation_id, user)
    db.delete(conv)
    db.commit()
    logger.info("Deleted conversation %s", conversation_id)


def recent_history(db: Session, conversation: Conversation, limit: int, exclude_id: str | None = None) -> list[Message]:
    """The newest *limit* messages of *conversation*, returned oldest first."""
    if limit <= 0:
        return []
    query = db.query(Message).filter(Message.conversation_id == conversation.id)
    if exclude_id:
        query = query.filter(Message.id != exclude_id)
    rows = query.order_by(Message.seq.desc(), Message.created_at.desc()).limit(limit).all()
    return list(reversed(rows))


def _next_seq(db: Session, conversation: Conversation) -> int:
    current = (
        db.query(func.max(Message.seq))
        .filter(Message.conversation_id == conversation.id)
        .scalar()
    )
    return (current or 0) + 1


def generate_reply(
    db: Session,
    conversation_id: str,
    user: User,
    prompt: str,
    client,
    history_window: int = 15,
) -> Message:
    """Record *prompt*, ask the completion client for a reply, and record that too.

    The user message is committed before the provider is called and stays
    recorded if anything after that fails.
    """
    conv = get_owned_conversation(db, conversation_id, user)

    user_message = Message(
        conversation_id=conv.id, role=ROLE_USER, content=prompt, seq=_next_seq(db, conv)
    )
    db.add(user_message)
    db.commit()

    history = recent_history(db, conv, history_window, exclude_id=user_message.id)
    full_prompt = build_prompt(history, prompt, max_messages=history_window)
    logger.info(
        "Generating reply for conversation %s (history=%d, prompt_chars=%d)",
        conv.id, len(history), len(full_prompt),
    )

    output = client.complete(full_prompt)

    assistant_message = Message(
        conversation_id=conv.id, role=ROLE_ASSISTANT, content=output, seq=_next_seq(db, conv)
    )
    db.add(assistant_message)
    conv.updated_at = utcnow()
    db.commit()
    db.refresh(assistant_message)
    return assistant_message
