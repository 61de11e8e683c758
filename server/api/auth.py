"""Registration, sign-in and sign-out endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from auth import get_current_user, get_session_token
from config import settings
from database import get_db
from models.user import User
from schemas.auth import RegisterRequest, SignInRequest, SignInResponse, SuccessResponse, UserOut
from services.accounts import authenticate, issue_session_token, register_user, revoke_session_token

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/register",
    response_model=UserOut,
    status_code=201,
    responses={400: {"description": "Missing or short password"}, 409: {"description": "Email already registered"}},
)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    return register_user(
        db,
        payload.email,
        payload.password,
        payload.name,
        min_password_length=settings.MIN_PASSWORD_LENGTH,
    )


@router.post("/signin", response_model=SignInResponse, responses={401: {"description": "Invalid credentials"}})
def signin(payload: SignInRequest, response: Response, db: Session = Depends(get_db)):
    user = authenticate(db, payload.email, payload.password)
    if not user:
        logger.info("Failed sign-in attempt")
        raise HTTPException(status_code=401, detail="Invalid credentials.")

    token = issue_session_token(db, user, settings.SECRET_KEY, settings.SESSION_TTL_SECONDS)
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        token,
        max_age=settings.SESSION_TTL_SECONDS,
        httponly=True,
        samesite="lax",
        secure=settings.SESSION_COOKIE_SECURE,
    )
    return {"key": token, "user": UserOut.model_validate(user)}


@router.post("/signout", response_model=SuccessResponse)
def signout(
    response: Response,
    token: str = Depends(get_session_token),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    revoke_session_token(db, token, settings.SECRET_KEY)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"success": True}


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user
