"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, Request

from arena_auth.config import settings
from arena_auth.core.exceptions import RateLimitException
from arena_auth.core.redis_client import RateLimiter, get_redis_client
from arena_auth.database import AsyncSessionLocal
from arena_auth.services.identifier_resolver import IdentifierResolver
from arena_auth.services.identity_client import IdentitySessionClient
from arena_auth.services.identity_provider import FirebaseIdentityProvider, IdentityProvider
from arena_auth.services.profile_directory import ProfileDirectory


def get_profile_directory() -> ProfileDirectory:
    """Profile directory bound to the application's session factory."""
    return ProfileDirectory(AsyncSessionLocal)


def get_identity_provider() -> IdentityProvider:
    """
    Identity provider for a single request.

    A fresh instance per request keeps each request's session stream isolated.
    """
    return FirebaseIdentityProvider(
        settings.firebase_web_api_key,
        auth_url=settings.firebase_auth_url,
        token_url=settings.firebase_token_url,
        revoke_on_sign_out=settings.firebase_revoke_on_sign_out,
    )


def get_identity_client(
    provider: Annotated[IdentityProvider, Depends(get_identity_provider)],
    profiles: Annotated[ProfileDirectory, Depends(get_profile_directory)],
) -> IdentitySessionClient:
    """Identity session client for the request."""
    return IdentitySessionClient(provider, profiles)


def get_identifier_resolver(
    provider: Annotated[IdentityProvider, Depends(get_identity_provider)],
    profiles: Annotated[ProfileDirectory, Depends(get_profile_directory)],
) -> IdentifierResolver:
    """Identifier resolver for the request."""
    return IdentifierResolver(profiles, provider)


def get_login_rate_limiter() -> RateLimiter | None:
    """Login rate limiter, or None when rate limiting is disabled."""
    if not settings.rate_limit_enabled:
        return None
    return RateLimiter(get_redis_client(), limit=settings.rate_limit_per_minute)


def enforce_login_rate_limit(
    request: Request,
    limiter: Annotated[RateLimiter | None, Depends(get_login_rate_limiter)],
) -> None:
    """
    Count a login attempt for the caller's address.

    Raises:
        RateLimitException: If the caller exceeded the per-minute limit
    """
    if limiter is None:
        return

    client = request.client.host if request.client else "unknown"
    if not limiter.check_rate_limit(f"rate:login:{client}"):
        raise RateLimitException("Too many login attempts. Try again later.")


# Type aliases for dependency injection
IdentityClient = Annotated[IdentitySessionClient, Depends(get_identity_client)]
Resolver = Annotated[IdentifierResolver, Depends(get_identifier_resolver)]
LoginRateLimit = Depends(enforce_login_rate_limit)
