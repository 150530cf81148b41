"""Identity session client: sign-up, sign-in, sign-out and session relay."""

from collections.abc import Callable
from typing import Any

import structlog

from arena_auth.core.background import spawn
from arena_auth.core.session_stream import SessionListener
from arena_auth.schemas.identity import Identity, Session
from arena_auth.services.identity_provider import IdentityProvider
from arena_auth.services.profile_directory import ProfileDirectory

logger = structlog.get_logger(__name__)


class IdentitySessionClient:
    """
    Thin wrapper over the identity provider.

    The provider is the only source of session state; this client never
    caches sessions, it relays the provider's stream.
    """

    def __init__(self, provider: IdentityProvider, profiles: ProfileDirectory | None = None):
        """Initialize with the identity provider and optional profile directory."""
        self.provider = provider
        self.profiles = profiles

    async def sign_up(
        self, email: str, password: str, attributes: dict[str, Any] | None = None
    ) -> Identity:
        """
        Create an account and record its username in the profile directory.

        The profile write runs detached after the account exists. Its failure
        is logged and never changes the result of the sign-up.

        Raises:
            ProviderRejectedError: If the provider refuses the account
        """
        attributes = attributes or {}
        identity = await self.provider.sign_up(email, password, attributes)

        username = attributes.get("username")
        if self.profiles is not None and username:
            spawn(
                self.profiles.upsert_by_user_id(identity.id, username),
                name=f"profile-upsert:{identity.id}",
            )

        return identity

    async def sign_in(self, credential: str, password: str) -> Identity:
        """
        Sign in with an email credential.

        Raises:
            ProviderRejectedError: If the provider rejects the credentials
        """
        session = await self.provider.sign_in(credential, password)
        logger.info("signed_in", user_id=session.identity.id)
        return session.identity

    async def sign_out(self) -> None:
        """Sign out of the current session."""
        await self.provider.sign_out()

    def current_session(self) -> Session | None:
        """Return the provider's current session."""
        return self.provider.sessions.current

    def on_session_change(self, callback: SessionListener) -> Callable[[], None]:
        """Subscribe to session replacements; the current value is delivered immediately."""
        return self.provider.sessions.subscribe(callback)

    def restore_session(self, session: Session) -> None:
        """Hand a previously issued session to the provider."""
        self.provider.restore(session)

    async def refresh_session(self) -> Session | None:
        """Refresh the current session through the provider."""
        return await self.provider.refresh()
