"""Resolve login identifiers to provider credentials."""

import structlog
from firebase_admin.exceptions import FirebaseError
from sqlalchemy.exc import SQLAlchemyError

from arena_auth.core.exceptions import IdentifierLookupError, IdentifierNotFoundError
from arena_auth.services.identity_provider import IdentityProvider
from arena_auth.services.profile_directory import ProfileDirectory

logger = structlog.get_logger(__name__)


class IdentifierResolver:
    """Turns an email-or-username identifier into the email the provider expects."""

    def __init__(self, profiles: ProfileDirectory, provider: IdentityProvider):
        """Initialize resolver with the profile directory and identity provider."""
        self.profiles = profiles
        self.provider = provider

    async def resolve(self, identifier: str) -> str:
        """
        Resolve ``identifier`` to a credential.

        Identifiers containing "@" are taken as already being an email and
        returned without any lookup. Anything else is treated as a username.

        Args:
            identifier: Email or username typed by the user

        Returns:
            Email to sign in with

        Raises:
            IdentifierNotFoundError: If no usable account exists for the username
            IdentifierLookupError: If the directory or provider lookup fails
        """
        if "@" in identifier:
            return identifier

        try:
            user_id = await self.profiles.lookup_by_username(identifier)
        except SQLAlchemyError as e:
            logger.error("profile_lookup_failed", username=identifier, error=str(e))
            raise IdentifierLookupError()

        if not user_id:
            raise IdentifierNotFoundError()

        try:
            identity = await self.provider.get_user(user_id)
        except (FirebaseError, ValueError) as e:
            logger.error("identity_lookup_failed", user_id=user_id, error=str(e))
            raise IdentifierLookupError()

        if identity is None or not identity.email:
            # Profile points at an account that is gone or has no email
            logger.warning("profile_without_email", user_id=user_id)
            raise IdentifierNotFoundError()

        return identity.email
