"""Session authentication dependency."""

from __future__ import annotations

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from errors import AuthenticationRequired
from models.user import User
from services.accounts import resolve_session_token

bearer_scheme = HTTPBearer(auto_error=False)


def get_session_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """The caller's raw session token from the Bearer header or the session cookie."""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.SESSION_COOKIE_NAME, "")


def get_current_user(
    token: str = Depends(get_session_token),
    db: Session = Depends(get_db),
) -> User:
    """FastAPI dependency: resolve the session token and return the User."""
    user = resolve_session_token(db, token, settings.SECRET_KEY)
    if not user:
        raise AuthenticationRequired()
    return user
