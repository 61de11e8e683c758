"""SQLAlchemy models: re-export all."""

from models.user import User, SessionToken  # noqa: F401
from models.conversation import Conversation, Message  # noqa: F401
