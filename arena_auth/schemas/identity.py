"""Identity and session value schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class Identity(BaseModel):
    """Provider-side user record."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Provider-assigned user ID")
    email: str | None = None
    username: str | None = None


class Session(BaseModel):
    """Authenticated session relayed from the identity provider."""

    model_config = ConfigDict(frozen=True)

    identity: Identity
    access_token: str
    refresh_token: str
    expires_at: datetime | None = None
