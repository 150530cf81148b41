"""Database models."""

from arena_auth.models.profiles import profiles

__all__ = [
    "profiles",
]
