"""Profile directory: username to user ID mapping."""

from datetime import UTC, datetime

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from arena_auth.models.profiles import profiles

logger = structlog.get_logger(__name__)


class ProfileDirectory:
    """Thin read/upsert interface over the ``profiles`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """Each operation opens its own session from ``session_factory``."""
        self.session_factory = session_factory

    async def lookup_by_username(self, username: str) -> str | None:
        """
        Find the user ID registered under ``username``.

        Args:
            username: Exact, case-sensitive username

        Returns:
            User ID, or None when no profile exists

        Raises:
            SQLAlchemyError: If the directory query itself fails
        """
        async with self.session_factory() as db:
            query = select(profiles.c.user_id).where(profiles.c.username == username).limit(1)
            result = await db.execute(query)
            return result.scalar_one_or_none()

    async def upsert_by_user_id(self, user_id: str, username: str) -> None:
        """
        Register or rename the profile for ``user_id``.

        An existing row for the user ID gets the new username; otherwise a
        row is inserted.
        """
        async with self.session_factory() as db:
            result = await db.execute(
                select(profiles.c.user_id).where(profiles.c.user_id == user_id)
            )

            if result.first():
                await db.execute(
                    update(profiles)
                    .where(profiles.c.user_id == user_id)
                    .values(username=username, updated_at=datetime.now(UTC))
                )
            else:
                await db.execute(profiles.insert().values(user_id=user_id, username=username))

            await db.commit()

        logger.info("profile_upserted", user_id=user_id, username=username)
