"""Create the profiles table directly, without running migrations."""

import asyncio

from arena_auth.database import engine
from arena_auth.models.profiles import metadata


async def init_db() -> None:
    """Create every table the profile directory needs."""
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    await engine.dispose()
    print("✓ Profile directory initialized successfully!")


if __name__ == "__main__":
    asyncio.run(init_db())
