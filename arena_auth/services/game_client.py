"""Client-side facade tying the session stream to the token coordinator."""

from collections.abc import Callable

import structlog

from arena_auth.config import settings
from arena_auth.core.exceptions import AppException
from arena_auth.schemas.identity import Identity, Session
from arena_auth.services.identity_client import IdentitySessionClient
from arena_auth.services.identity_provider import FirebaseIdentityProvider
from arena_auth.services.surface_client import AuthSurfaceClient
from arena_auth.services.token_coordinator import SessionTokenCoordinator
from arena_auth.services.token_sync import TokenSynchronizer

logger = structlog.get_logger(__name__)


class GameClient:
    """
    One player's client instance.

    Login and registration go through the auth service surfaces; the
    resulting session is restored into the local identity client, whose
    stream drives the coordinator. ``status`` carries the latest user-facing
    message.
    """

    def __init__(
        self,
        surfaces: AuthSurfaceClient,
        identity: IdentitySessionClient,
        coordinator: SessionTokenCoordinator,
    ):
        self.surfaces = surfaces
        self.identity = identity
        self.coordinator = coordinator
        self.status: str | None = None
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def token(self) -> str | None:
        return self.coordinator.token

    @property
    def session(self) -> Session | None:
        return self.identity.current_session()

    def start(self) -> None:
        """Subscribe the coordinator; a restored session provisions right away."""
        if self._unsubscribe is None:
            self._unsubscribe = self.identity.on_session_change(self.coordinator.handle_session)

    async def close(self) -> None:
        """Unsubscribe and let outstanding syncs finish."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        await self.coordinator.wait_idle()

    async def register(self, email: str, username: str, password: str) -> str:
        """Register through the surface and return its message."""
        try:
            response = await self.surfaces.register(email, username, password)
        except AppException as e:
            self.status = e.message
            raise
        self.status = response.message
        return response.message

    async def login(self, identifier: str, password: str) -> Identity:
        """
        Log in and provision the game token.

        A token sync failure is reported through ``status`` only; the login
        itself has already succeeded by then.

        Raises:
            SurfaceRequestError: If the login surface rejects the attempt
        """
        try:
            response = await self.surfaces.login(identifier, password)
        except AppException as e:
            self.status = e.message
            raise

        identity = Identity(
            id=response.user.id,
            email=response.user.email,
            username=response.user.username,
        )
        if response.session is not None:
            self.identity.restore_session(
                Session(
                    identity=identity,
                    access_token=response.session.access_token,
                    refresh_token=response.session.refresh_token,
                    expires_at=response.session.expires_at,
                )
            )

        self.status = response.message
        if not await self.coordinator.handle_login(identity):
            self.status = self.coordinator.status
        return identity

    async def regenerate_token(self) -> str:
        """
        Replace the game token.

        Raises:
            NoActiveSessionError: If nobody is logged in
        """
        try:
            token = await self.coordinator.regenerate()
        except AppException as e:
            self.status = e.message
            raise
        self.status = self.coordinator.status
        return token

    async def logout(self) -> None:
        """Sign out; the session stream clears the local token."""
        try:
            await self.identity.sign_out()
        except AppException as e:
            self.status = e.message
            raise
        self.status = "Logged out."
        logger.info("logged_out")


def build_game_client(api_url: str) -> GameClient:
    """
    Wire a game client for the auth service at ``api_url``.

    ``api_url`` includes the API prefix, e.g. ``http://localhost:8000/api/v1``.
    Token store and Firebase settings come from the environment.
    """
    provider = FirebaseIdentityProvider(
        settings.firebase_web_api_key,
        auth_url=settings.firebase_auth_url,
        token_url=settings.firebase_token_url,
    )
    synchronizer = TokenSynchronizer(
        settings.token_store_url,
        settings.token_store_api_key,
        create_method=settings.token_store_create_method,
        update_method=settings.token_store_update_method,
        timeout=settings.token_store_timeout,
    )
    return GameClient(
        AuthSurfaceClient(api_url),
        IdentitySessionClient(provider),
        SessionTokenCoordinator(synchronizer),
    )
