"""Health check endpoints."""

from typing import Literal

from fastapi import APIRouter, status
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel

from arena_auth.config import settings
from arena_auth.core.firebase import is_firebase_initialized
from arena_auth.core.redis_client import check_redis_connection
from arena_auth.database import check_database_connection

router = APIRouter()

ComponentStatus = Literal["up", "down", "disabled"]


class HealthResponse(BaseModel):
    """Liveness answer."""

    status: str
    version: str
    environment: str


class ComponentsHealthResponse(HealthResponse):
    """Readiness answer with the state of each collaborator."""

    profile_directory: ComponentStatus
    rate_limiter: ComponentStatus
    identity_provider: ComponentStatus


def _state(healthy: bool) -> ComponentStatus:
    return "up" if healthy else "down"


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Liveness check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/health/detailed",
    response_model=ComponentsHealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Readiness check",
)
async def detailed_health_check() -> ComponentsHealthResponse:
    """
    Report the profile directory, rate limiter and identity provider.

    Login by username needs the profile directory and the Admin SDK, so
    either being down degrades the service. A down rate limiter does not,
    since it fails open.
    """
    directory = _state(await check_database_connection())
    identity_provider = _state(is_firebase_initialized())
    rate_limiter: ComponentStatus = "disabled"
    if settings.rate_limit_enabled:
        rate_limiter = _state(await run_in_threadpool(check_redis_connection))

    degraded = "down" in (directory, identity_provider)
    return ComponentsHealthResponse(
        status="degraded" if degraded else "healthy",
        version=settings.app_version,
        environment=settings.environment,
        profile_directory=directory,
        rate_limiter=rate_limiter,
        identity_provider=identity_provider,
    )


@router.get("/ping", status_code=status.HTTP_200_OK, summary="Simple ping")
async def ping() -> dict[str, str]:
    return {"message": "pong"}
