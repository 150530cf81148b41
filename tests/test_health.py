"""Tests for health endpoints, rate limiting and logging helpers."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import redis
from httpx import AsyncClient

from arena_auth.config import settings
from arena_auth.core import firebase
from arena_auth.core.redis_client import RateLimiter, check_redis_connection
from arena_auth.middleware.logging import redact_credentials


@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    response = await client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient) -> None:
    response = await client.get("/api/v1/ping", headers={"X-Request-ID": "req-123"})

    assert response.json() == {"message": "pong"}
    assert response.headers["X-Request-ID"] == "req-123"


@pytest.mark.asyncio
@patch("arena_auth.api.v1.endpoints.health.is_firebase_initialized", return_value=True)
@patch("arena_auth.api.v1.endpoints.health.check_database_connection", new_callable=AsyncMock)
async def test_detailed_health(
    mock_check_db: AsyncMock,
    mock_firebase: MagicMock,
    client: AsyncClient,
) -> None:
    mock_check_db.return_value = True

    response = await client.get("/api/v1/health/detailed")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["profile_directory"] == "up"
    assert data["identity_provider"] == "up"
    assert data["rate_limiter"] == "disabled"


@pytest.mark.asyncio
@patch("arena_auth.api.v1.endpoints.health.check_database_connection", new_callable=AsyncMock)
async def test_detailed_health_degraded(mock_check_db: AsyncMock, client: AsyncClient) -> None:
    mock_check_db.return_value = False

    response = await client.get("/api/v1/health/detailed")

    assert response.json()["status"] == "degraded"
    assert response.json()["profile_directory"] == "down"


@pytest.mark.asyncio
@patch("arena_auth.api.v1.endpoints.health.is_firebase_initialized", return_value=True)
@patch("arena_auth.api.v1.endpoints.health.check_database_connection", new_callable=AsyncMock)
@patch("arena_auth.api.v1.endpoints.health.check_redis_connection", return_value=False)
async def test_detailed_health_rate_limiter_down(
    mock_check_redis: MagicMock,
    mock_check_db: AsyncMock,
    mock_firebase: MagicMock,
    client: AsyncClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(settings, "rate_limit_enabled", True)
    mock_check_db.return_value = True

    response = await client.get("/api/v1/health/detailed")

    data = response.json()
    assert data["rate_limiter"] == "down"
    assert data["status"] == "healthy"
    mock_check_redis.assert_called_once_with()


@patch("arena_auth.core.redis_client.get_redis_client")
def test_check_redis_connection_reports_ping(mock_get_client: MagicMock) -> None:
    mock_get_client.return_value.ping.side_effect = redis.ConnectionError("down")

    assert check_redis_connection() is False

    mock_get_client.return_value.ping.side_effect = None
    mock_get_client.return_value.ping.return_value = True
    assert check_redis_connection() is True


def test_rate_limiter_first_attempt_starts_window():
    mock_redis = MagicMock()
    mock_redis.incr.return_value = 1
    limiter = RateLimiter(redis_client=mock_redis, limit=5)

    assert limiter.check_rate_limit("rate:login:1.2.3.4") is True
    mock_redis.expire.assert_called_once_with("rate:login:1.2.3.4", 60)


def test_rate_limiter_counts_and_blocks():
    mock_redis = MagicMock()
    limiter = RateLimiter(redis_client=mock_redis, limit=5)

    mock_redis.incr.return_value = 5
    assert limiter.check_rate_limit("rate:login:1.2.3.4") is True
    mock_redis.expire.assert_not_called()

    mock_redis.incr.return_value = 6
    assert limiter.check_rate_limit("rate:login:1.2.3.4") is False


def test_rate_limiter_fails_open():
    mock_redis = MagicMock()
    mock_redis.incr.side_effect = redis.ConnectionError("down")
    limiter = RateLimiter(redis_client=mock_redis, limit=5)

    assert limiter.check_rate_limit("rate:login:1.2.3.4") is True


@patch("arena_auth.core.firebase.firebase_admin.initialize_app")
def test_firebase_initialized_once(mock_initialize: MagicMock, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(firebase, "_firebase_app", None)

    first = firebase.initialize_firebase()
    second = firebase.initialize_firebase()

    assert first is second
    mock_initialize.assert_called_once_with(None)
    assert firebase.is_firebase_initialized() is True


def test_credentials_are_redacted_from_logs():
    event = redact_credentials(
        None, "info", {"event": "login", "password": "secret123", "user_id": "uid-1"}
    )

    assert event["password"] == "[redacted]"
    assert event["user_id"] == "uid-1"
