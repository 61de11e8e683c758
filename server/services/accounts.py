"""Accounts: registration, password checks, and session tokens."""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from datetime import timedelta

import bcrypt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from errors import EmailAlreadyRegistered, ValidationFailed
from models._time import utcnow
from models.user import SessionToken, User

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(stored_hash: str, password: str) -> bool:
    """Verify password against stored bcrypt hash."""
    if not stored_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode(), stored_hash.encode())
    except (ValueError, UnicodeDecodeError):
        return False


def register_user(
    db: Session,
    email: str | None,
    password: str | None,
    name: str | None = None,
    *,
    min_password_length: int = 6,
) -> User:
    email = (email or "").strip()
    if not email or not password:
        raise ValidationFailed("Email and password are required")
    if len(password) < min_password_length:
        raise ValidationFailed(f"Password must be at least {min_password_length} characters long")

    if db.query(User).filter(User.email == email).first():
        raise EmailAlreadyRegistered(email)

    user = User(email=email, name=name or None, password_hash=hash_password(password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email.
        db.rollback()
        raise EmailAlreadyRegistered(email)
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


def authenticate(db: Session, email: str, password: str) -> User | None:
    """Return the user for valid credentials, else None."""
    if not email or not password:
        return None
    user = db.query(User).filter(User.email == email.strip()).first()
    if not user or not verify_password(user.password_hash, password):
        return None
    return user


def digest_token(token: str, secret: str) -> str:
    """HMAC-SHA256 of a session token, keyed with the session-signing secret."""
    return hmac.new(secret.encode(), token.encode(), hashlib.sha256).hexdigest()


def issue_session_token(db: Session, user: User, secret: str, ttl_seconds: int) -> str:
    """Create a session for *user* and return the raw token (shown to the client once)."""
    token = secrets.token_urlsafe(32)
    db.add(SessionToken(
        user_id=user.id,
        token_hash=digest_token(token, secret),
        expires_at=utcnow() + timedelta(seconds=ttl_seconds),
    ))
    db.commit()
    return token


def resolve_session_token(db: Session, token: str, secret: str) -> User | None:
    """Return the owner of a live session token, or None.

    An expired token is deleted when it is presented.
    """
    if not token:
        return None
    row = (
        db.query(SessionToken)
        .filter(SessionToken.token_hash == digest_token(token, secret))
        .first()
    )
    if not row:
        return None
    if row.expires_at <= utcnow():
        db.delete(row)
        db.commit()
        return None
    return row.user


def revoke_session_token(db: Session, token: str, secret: str) -> bool:
    deleted = (
        db.query(SessionToken)
        .filter(SessionToken.token_hash == digest_token(token, secret))
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted > 0
