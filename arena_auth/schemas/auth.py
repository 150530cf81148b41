"""Authentication schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CredentialsBody(BaseModel):
    """
    Loosely typed request body.

    Fields accept any JSON value and a body that is not an object reads as
    an empty one, so the endpoints answer malformed input with their own
    status codes instead of a 422.
    """

    @model_validator(mode="before")
    @classmethod
    def object_or_empty(cls, data: Any) -> Any:
        return data if isinstance(data, dict) else {}


class LoginRequest(CredentialsBody):
    """Login request; identifier is an email or a username."""

    identifier: Any = None
    password: Any = None


class RegisterRequest(CredentialsBody):
    """Registration request."""

    email: Any = None
    username: Any = None
    password: Any = None


class UserResponse(BaseModel):
    """User response schema."""

    id: str
    email: str | None = None
    username: str | None = None

    model_config = {"from_attributes": True}


class SessionResponse(BaseModel):
    """Provider session artifact handed to the client."""

    access_token: str
    refresh_token: str
    expires_at: datetime | None = None


class LoginResponse(BaseModel):
    """Login response with user info and session artifact."""

    message: str
    user: UserResponse
    session: SessionResponse | None = None


class RegistrationEcho(BaseModel):
    """What the registration surface received, without the password itself."""

    model_config = ConfigDict(populate_by_name=True)

    email: Any = None
    username: Any = None
    password_length: int | None = Field(default=None, alias="passwordLength")


class RegisterResponse(BaseModel):
    """Registration response; failures are reported in ``message``."""

    message: str
    received: RegistrationEcho
