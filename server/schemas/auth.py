"""Auth schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RegisterRequest(BaseModel):
    # Presence and length are checked by the handler so failures map to 400, not 422.
    email: str | None = None
    password: str | None = None
    name: str | None = None


class SignInRequest(BaseModel):
    email: str = ""
    password: str = ""


class UserOut(BaseModel):
    id: int
    email: str
    name: str | None = None
    image: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class SignInResponse(BaseModel):
    key: str
    user: UserOut


class SuccessResponse(BaseModel):
    success: bool = True
