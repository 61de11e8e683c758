"""Reply generation endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from auth import get_current_user
from config import settings
from database import get_db
from errors import ValidationFailed
from models.user import User
from schemas.conversation import GenerateRequest, GenerateResponse
from services.conversations import generate_reply
from services.llm import CompletionClient

logger = logging.getLogger(__name__)

router = APIRouter()


def get_completion_client(request: Request) -> CompletionClient:
    """FastAPI dependency: the completion client built during app startup."""
    return request.app.state.completion_client


@router.post(
    "/generate",
    response_model=GenerateResponse,
    responses={400: {"description": "Missing prompt or conversation id"}, 404: {"description": "Not found"}},
)
def generate(
    payload: GenerateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    client: CompletionClient = Depends(get_completion_client),
):
    if not payload.prompt or not payload.prompt.strip():
        raise ValidationFailed("Prompt is required")
    if not payload.conversation_id:
        raise ValidationFailed("Conversation ID is required")

    reply = generate_reply(
        db,
        payload.conversation_id,
        user,
        payload.prompt,
        client,
        history_window=settings.HISTORY_WINDOW,
    )
    return GenerateResponse(output=reply.content, message_id=reply.id)
