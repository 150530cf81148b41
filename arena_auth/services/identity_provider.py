"""Identity provider backed by Firebase Authentication."""

import asyncio
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

import httpx
import structlog
from firebase_admin import auth
from firebase_admin.exceptions import FirebaseError

from arena_auth.core.exceptions import ProviderRejectedError
from arena_auth.core.session_stream import SessionStream
from arena_auth.schemas.identity import Identity, Session

logger = structlog.get_logger(__name__)


class IdentityProvider(Protocol):
    """Operations the core needs from an external identity provider."""

    sessions: SessionStream

    async def sign_up(self, email: str, password: str, attributes: dict[str, Any]) -> Identity:
        """Create an account."""

    async def sign_in(self, email: str, password: str) -> Session:
        """Verify credentials and publish the new session."""

    async def sign_out(self) -> None:
        """End the current session and publish None."""

    async def get_user(self, user_id: str) -> Identity | None:
        """Read an identity by user ID; None when the provider has no such user."""

    def restore(self, session: Session) -> None:
        """Adopt a session artifact obtained elsewhere and publish it."""

    async def refresh(self) -> Session | None:
        """Refresh the current session; publish None if the provider expired it."""


# Identity Toolkit error codes mapped to user-facing text
ERROR_MESSAGES = {
    "INVALID_LOGIN_CREDENTIALS": "Invalid login credentials",
    "INVALID_PASSWORD": "Invalid login credentials",
    "EMAIL_NOT_FOUND": "Invalid login credentials",
    "INVALID_EMAIL": "Invalid email address",
    "MISSING_PASSWORD": "Password is required",
    "USER_DISABLED": "User account is disabled",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts. Try again later",
    "TOKEN_EXPIRED": "Session has expired",
    "INVALID_REFRESH_TOKEN": "Session has expired",
}

# Secure Token refusals that end the session for good
SESSION_ENDING_CODES = frozenset(
    {"TOKEN_EXPIRED", "INVALID_REFRESH_TOKEN", "USER_DISABLED", "USER_NOT_FOUND"}
)


def _identity_from_record(record: auth.UserRecord) -> Identity:
    return Identity(id=record.uid, email=record.email, username=record.display_name)


def _provider_error_code(response: httpx.Response) -> str | None:
    try:
        raw = response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return None

    # Codes may carry detail, e.g. "TOO_MANY_ATTEMPTS_TRY_LATER : Access ..."
    return str(raw).split(" : ", 1)[0].strip()


def _provider_error_message(response: httpx.Response) -> str:
    """Turn an Identity Toolkit error body into a readable message."""
    code = _provider_error_code(response)
    if code is None:
        return response.text or f"Identity provider returned {response.status_code}"
    return ERROR_MESSAGES.get(code, code.replace("_", " ").capitalize())


class FirebaseIdentityProvider:
    """
    Firebase Authentication adapter.

    Account management goes through the Admin SDK; password sign-in and
    token refresh go through the Identity Toolkit and Secure Token REST APIs,
    which the Admin SDK does not cover. The provider owns the session stream
    for the client instance it belongs to.
    """

    def __init__(
        self,
        api_key: str,
        *,
        auth_url: str = "https://identitytoolkit.googleapis.com/v1",
        token_url: str = "https://securetoken.googleapis.com/v1/token",
        revoke_on_sign_out: bool = False,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.auth_url = auth_url.rstrip("/")
        self.token_url = token_url
        self.revoke_on_sign_out = revoke_on_sign_out
        self.timeout = timeout
        self.transport = transport
        self.sessions = SessionStream()

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def sign_up(
        self, email: str, password: str, attributes: dict[str, Any] | None = None
    ) -> Identity:
        """
        Create a Firebase account.

        The username attribute is stored as the display name. No session is
        started; the user signs in afterwards.

        Raises:
            ProviderRejectedError: If Firebase refuses the account
        """
        attributes = attributes or {}
        try:
            record = await asyncio.to_thread(
                auth.create_user,
                email=email,
                password=password,
                display_name=attributes.get("username"),
            )
        except auth.EmailAlreadyExistsError:
            raise ProviderRejectedError("User already registered")
        except (ValueError, FirebaseError) as e:
            raise ProviderRejectedError(str(e))

        logger.info("identity_created", user_id=record.uid)
        return _identity_from_record(record)

    async def sign_in(self, email: str, password: str) -> Session:
        """
        Sign in with email and password and publish the session.

        Raises:
            ProviderRejectedError: If the credentials are rejected or the provider is unreachable
        """
        try:
            async with self._client() as client:
                response = await client.post(
                    f"{self.auth_url}/accounts:signInWithPassword",
                    params={"key": self.api_key},
                    json={"email": email, "password": password, "returnSecureToken": True},
                )
        except httpx.HTTPError as e:
            logger.error("identity_provider_unreachable", error=str(e))
            raise ProviderRejectedError(f"Unable to reach identity provider: {e!s}")

        if response.status_code != httpx.codes.OK:
            message = _provider_error_message(response)
            logger.info("sign_in_rejected", status_code=response.status_code, reason=message)
            raise ProviderRejectedError(message)

        data = response.json()
        session = Session(
            identity=Identity(
                id=data["localId"],
                email=data.get("email"),
                username=data.get("displayName") or None,
            ),
            access_token=data["idToken"],
            refresh_token=data["refreshToken"],
            expires_at=datetime.now(UTC) + timedelta(seconds=int(data.get("expiresIn", 3600))),
        )
        self.sessions.publish(session)
        return session

    async def sign_out(self) -> None:
        """
        End the current session.

        Raises:
            ProviderRejectedError: If refresh token revocation fails
        """
        session = self.sessions.current
        if session is None:
            return

        if self.revoke_on_sign_out:
            try:
                await asyncio.to_thread(auth.revoke_refresh_tokens, session.identity.id)
            except (ValueError, FirebaseError) as e:
                raise ProviderRejectedError(str(e))

        self.sessions.publish(None)

    async def get_user(self, user_id: str) -> Identity | None:
        """
        Read an identity through the Admin SDK.

        Raises:
            FirebaseError: On provider failures other than an unknown user
        """
        try:
            record = await asyncio.to_thread(auth.get_user, user_id)
        except auth.UserNotFoundError:
            return None
        return _identity_from_record(record)

    def restore(self, session: Session) -> None:
        """Adopt a session artifact, e.g. one returned by the login surface."""
        self.sessions.publish(session)

    async def refresh(self) -> Session | None:
        """
        Exchange the refresh token for a new ID token.

        A 400 whose code says the refresh token is dead means the provider
        expired the session, so None is published. Any other failure leaves
        the session untouched.

        Raises:
            ProviderRejectedError: If the provider is unreachable or answers
                with an error that does not end the session
        """
        session = self.sessions.current
        if session is None:
            return None

        try:
            async with self._client() as client:
                response = await client.post(
                    self.token_url,
                    params={"key": self.api_key},
                    data={"grant_type": "refresh_token", "refresh_token": session.refresh_token},
                )
        except httpx.HTTPError as e:
            raise ProviderRejectedError(f"Unable to reach identity provider: {e!s}")

        if response.status_code != httpx.codes.OK:
            if (
                response.status_code == httpx.codes.BAD_REQUEST
                and _provider_error_code(response) in SESSION_ENDING_CODES
            ):
                logger.info(
                    "session_expired",
                    user_id=session.identity.id,
                    reason=_provider_error_message(response),
                )
                self.sessions.publish(None)
                return None

            logger.warning(
                "session_refresh_failed",
                user_id=session.identity.id,
                status_code=response.status_code,
            )
            raise ProviderRejectedError(_provider_error_message(response))

        data = response.json()
        refreshed = session.model_copy(
            update={
                "access_token": data["id_token"],
                "refresh_token": data["refresh_token"],
                "expires_at": datetime.now(UTC) + timedelta(seconds=int(data["expires_in"])),
            }
        )
        self.sessions.publish(refreshed)
        return refreshed
