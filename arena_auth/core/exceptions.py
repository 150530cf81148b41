"""Custom application exceptions."""


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class BadRequestException(AppException):
    """Bad request exception."""

    def __init__(self, message: str = "Bad request"):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400)


class RateLimitException(AppException):
    """Rate limit exceeded exception."""

    def __init__(self, message: str = "Rate limit exceeded"):
        """Initialize with 429 status code."""
        super().__init__(message, status_code=429)


# Identifier resolution


class ResolutionError(BadRequestException):
    """A login identifier could not be turned into a credential."""


class IdentifierNotFoundError(ResolutionError):
    """No usable account exists for the identifier."""

    def __init__(self, message: str = "No account found for that username."):
        super().__init__(message)


class IdentifierLookupError(ResolutionError):
    """The directory or provider failed while resolving the identifier."""

    def __init__(self, message: str = "Unable to look up username."):
        super().__init__(message)


# Identity provider


class AuthError(BadRequestException):
    """Base class for identity provider failures."""


class ProviderRejectedError(AuthError):
    """The identity provider rejected the request; message is passed through."""


# Token store


class SyncError(AppException):
    """A token could not be synchronized with the token store."""

    def __init__(self, message: str):
        super().__init__(message, status_code=502)


class StoreRejectedError(SyncError):
    """The token store answered with a non-2xx status."""

    def __init__(self, message: str = "Failed to sync token."):
        super().__init__(message)


class TokenStoreTransportError(SyncError):
    """The token store could not be reached."""

    def __init__(self, message: str = "Unable to sync token. Try again."):
        super().__init__(message)


# Preconditions


class PreconditionError(AppException):
    """The operation is not allowed in the current state."""

    def __init__(self, message: str):
        super().__init__(message, status_code=409)


class NoActiveSessionError(PreconditionError):
    """A token operation was requested without an authenticated session."""

    def __init__(self, message: str = "You need to be logged in to regenerate a token."):
        super().__init__(message)


class SurfaceRequestError(AppException):
    """The login or registration surface answered with an error status."""
