"""HTTP client for the login and registration surfaces."""

from dataclasses import dataclass
from typing import Any

import httpx

from arena_auth.core.exceptions import SurfaceRequestError
from arena_auth.schemas.auth import LoginResponse, RegisterResponse


@dataclass
class AuthSurfaceClient:
    """Calls ``/auth/login`` and ``/auth/register`` on the auth service."""

    base_url: str
    timeout_seconds: float | None = None
    transport: httpx.AsyncBaseTransport | None = None

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ValueError("auth service base_url must not be empty")

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout_seconds,
            transport=self.transport,
        )

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            async with self._client() as client:
                response = await client.post(path, json=payload)
        except httpx.HTTPError as e:
            raise SurfaceRequestError(f"Unable to reach auth service: {e!s}", status_code=503)

        if not response.is_success:
            try:
                message = response.json().get("message") or response.text
            except ValueError:
                message = response.text
            raise SurfaceRequestError(message or "Request failed", status_code=response.status_code)

        return response.json()

    async def login(self, identifier: str, password: str) -> LoginResponse:
        """
        Log in with an email or username.

        Raises:
            SurfaceRequestError: If the surface answers with an error status
        """
        data = await self._post("/auth/login", {"identifier": identifier, "password": password})
        return LoginResponse.model_validate(data)

    async def register(self, email: str, username: str, password: str) -> RegisterResponse:
        """
        Register an account.

        The surface may report failure inside a 200 response; check ``message``.
        """
        data = await self._post(
            "/auth/register",
            {"email": email, "username": username, "password": password},
        )
        return RegisterResponse.model_validate(data)
