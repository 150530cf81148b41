"""End-to-end tests of the game client against the auth API."""

import httpx
import pytest
from httpx import ASGITransport

from arena_auth.config import settings
from arena_auth.core import background
from arena_auth.core.exceptions import (
    NoActiveSessionError,
    StoreRejectedError,
    SurfaceRequestError,
)
from arena_auth.core.security import generate_token
from arena_auth.schemas.tokens import SyncIntent
from arena_auth.services.game_client import GameClient, build_game_client
from arena_auth.services.identity_client import IdentitySessionClient
from arena_auth.services.surface_client import AuthSurfaceClient
from arena_auth.services.token_coordinator import SessionTokenCoordinator


@pytest.fixture
def surfaces(api_overrides) -> AuthSurfaceClient:
    return AuthSurfaceClient("http://test/api/v1", transport=ASGITransport(app=api_overrides))


@pytest.fixture
async def game(surfaces, client_provider, synchronizer):
    game = GameClient(
        surfaces,
        IdentitySessionClient(client_provider),
        SessionTokenCoordinator(synchronizer),
    )
    game.start()
    yield game
    await game.close()
    await background.drain()


async def test_login_provisions_fresh_token_and_regenerate_updates(
    game, synchronizer, registered_nova
):
    """A fresh session creates a random token; regeneration updates with a new one."""
    identity = await game.login("Nova", "secret123")

    assert identity.id == registered_nova.id
    assert game.session is not None
    assert game.status == "Logged in successfully."

    intent, token, user_id = synchronizer.calls[0]
    assert intent == SyncIntent.CREATE
    assert user_id == registered_nova.id
    assert len(token) == 32
    assert game.token == token
    # Later syncs in the same session only update
    assert all(call[0] == SyncIntent.UPDATE for call in synchronizer.calls[1:])

    new_token = await game.regenerate_token()

    assert new_token != token
    assert synchronizer.calls[-1] == (SyncIntent.UPDATE, new_token, registered_nova.id)
    assert game.token == new_token
    assert game.status == "Token regenerated."


async def test_register_then_login(game, synchronizer):
    message = await game.register("a@x.com", "Nova", "secret123")
    await background.drain()

    assert message == "Account has been created."
    assert game.token is None
    assert synchronizer.calls == []

    await game.login("Nova", "secret123")

    assert game.token is not None
    assert [call[0] for call in synchronizer.calls].count(SyncIntent.CREATE) == 1


async def test_register_failure_is_reported_in_status(game, provider):
    provider.add_account("a@x.com", "secret123")

    message = await game.register("a@x.com", "Nova", "secret123")

    assert message == "User already registered"
    assert game.status == "User already registered"


async def test_login_failure_sets_status(game, synchronizer):
    with pytest.raises(SurfaceRequestError) as exc_info:
        await game.login("Ghost", "x")

    assert exc_info.value.status_code == 400
    assert game.status == "No account found for that username."
    assert game.token is None
    assert synchronizer.calls == []


async def test_logout_clears_token_without_store_call(game, synchronizer, registered_nova):
    await game.login("Nova", "secret123")
    await game.coordinator.wait_idle()
    calls = len(synchronizer.calls)

    await game.logout()

    assert game.token is None
    assert game.session is None
    assert game.status == "Logged out."
    assert len(synchronizer.calls) == calls


async def test_regenerate_without_login(game, synchronizer):
    with pytest.raises(NoActiveSessionError):
        await game.regenerate_token()

    assert game.status == "You need to be logged in to regenerate a token."
    assert synchronizer.calls == []


async def test_sync_failure_does_not_fail_login(game, synchronizer, registered_nova):
    synchronizer.errors = [StoreRejectedError(), StoreRejectedError()]

    identity = await game.login("Nova", "secret123")

    assert identity.id == registered_nova.id
    assert game.session is not None
    assert game.status == "Failed to sync token."
    assert game.token is not None


async def test_surface_unreachable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    surfaces = AuthSurfaceClient("http://auth.test/api/v1", transport=httpx.MockTransport(handler))

    with pytest.raises(SurfaceRequestError) as exc_info:
        await surfaces.login("Nova", "secret123")

    assert exc_info.value.status_code == 503


def test_surface_client_requires_base_url():
    with pytest.raises(ValueError):
        AuthSurfaceClient("")


def test_default_tokens_have_128_bits():
    assert len(bytes.fromhex(generate_token())) * 8 == 128


def test_build_game_client_reads_token_store_settings(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings, "token_store_url", "http://store.test/api/v1/token")
    monkeypatch.setattr(settings, "token_store_update_method", "patch")

    game = build_game_client("http://auth.test/api/v1")

    synchronizer = game.coordinator.synchronizer
    assert synchronizer.url == "http://store.test/api/v1/token"
    assert synchronizer.methods[SyncIntent.UPDATE] == "PATCH"
    assert game.surfaces.base_url == "http://auth.test/api/v1"
    assert game.token is None
