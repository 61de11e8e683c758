"""Conversation CRUD endpoints: every route is scoped to the caller's own conversations."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auth import get_current_user
from database import get_db
from models.user import User
from schemas.auth import SuccessResponse
from schemas.conversation import (
    ConversationCreate,
    ConversationListItem,
    ConversationOut,
    ConversationUpdate,
    MessageOut,
)
from services import conversations as svc

router = APIRouter()


@router.get("", response_model=list[ConversationListItem])
def list_conversations(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    items = []
    for conv in svc.list_conversations(db, user):
        item = ConversationListItem.model_validate(conv)
        last = svc.latest_message(db, conv)
        item.last_message = MessageOut.model_validate(last) if last else None
        items.append(item)
    return items


@router.post("", response_model=ConversationOut)
def create_conversation(
    payload: ConversationCreate | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return svc.create_conversation(db, user, payload.title if payload else None)


@router.get("/{conversation_id}", response_model=list[MessageOut], responses={404: {"description": "Not found"}})
def get_messages(
    conversation_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return svc.list_messages(db, conversation_id, user)


@router.patch("/{conversation_id}", response_model=ConversationOut, responses={400: {"description": "Empty title"}, 404: {"description": "Not found"}})
def rename_conversation(
    conversation_id: str,
    payload: ConversationUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return svc.rename_conversation(db, conversation_id, user, payload.title)


@router.delete("/{conversation_id}", response_model=SuccessResponse, responses={404: {"description": "Not found"}})
def delete_conversation(
    conversation_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    svc.delete_conversation(db, conversation_id, user)
    return {"success": True}
