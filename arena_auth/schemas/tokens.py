"""Token store schemas."""

from enum import Enum

from pydantic import BaseModel


class SyncIntent(str, Enum):
    """Whether a sync is the first write for a user or an overwrite."""

    CREATE = "create"
    UPDATE = "update"


class TokenSyncPayload(BaseModel):
    """Body sent to the token store for both create and update."""

    token: str
    user_id: str
