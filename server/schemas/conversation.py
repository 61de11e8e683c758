"""Conversation, message and generation schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

_CAMEL = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class ConversationCreate(BaseModel):
    title: str | None = None


class ConversationUpdate(BaseModel):
    title: str | None = None


class MessageOut(BaseModel):
    id: str
    role: str
    content: str
    conversation_id: str
    created_at: datetime

    model_config = _CAMEL


class ConversationOut(BaseModel):
    id: str
    title: str
    user_id: int
    created_at: datetime
    updated_at: datetime

    model_config = _CAMEL


class ConversationListItem(ConversationOut):
    last_message: MessageOut | None = None


class GenerateRequest(BaseModel):
    prompt: str | None = None
    conversation_id: str | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GenerateResponse(BaseModel):
    success: bool = True
    output: str
    message_id: str

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
