"""Login and registration endpoints."""

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from arena_auth.config import settings
from arena_auth.core.exceptions import AppException, BadRequestException
from arena_auth.dependencies import IdentityClient, LoginRateLimit, Resolver
from arena_auth.schemas.auth import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    RegistrationEcho,
    SessionResponse,
    UserResponse,
)

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[LoginRateLimit],
    summary="Log in with email or username",
)
async def login(
    request: LoginRequest,
    resolver: Resolver,
    identity_client: IdentityClient,
) -> LoginResponse:
    """
    Log in with an email or a username and a password.

    Usernames are resolved to the account email through the profile
    directory before the identity provider is asked to sign in. Every
    failure is answered with 400 and a message.
    """
    if not request.identifier or not request.password:
        raise BadRequestException("Identifier and password are required.")
    if not isinstance(request.identifier, str) or not isinstance(request.password, str):
        raise BadRequestException("Identifier and password must be strings.")

    credential = await resolver.resolve(request.identifier)
    identity = await identity_client.sign_in(credential, request.password)
    session = identity_client.current_session()

    logger.info("login_succeeded", user_id=identity.id)

    return LoginResponse(
        message="Logged in successfully.",
        user=UserResponse(id=identity.id, email=identity.email, username=identity.username),
        session=SessionResponse(
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            expires_at=session.expires_at,
        )
        if session is not None
        else None,
    )


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_200_OK,
    summary="Register a new account",
)
async def register(
    request: RegisterRequest,
    identity_client: IdentityClient,
) -> JSONResponse:
    """
    Create an account and record its username.

    Failures are reported in ``message`` with a 200 status unless
    ``REGISTRATION_STRICT_STATUS`` is enabled, in which case they get 400.
    """
    email, username, password = request.email, request.username, request.password
    received = RegistrationEcho(
        email=email,
        username=username,
        password_length=len(password) if isinstance(password, str) else None,
    )

    failed = True
    if not email or not username or not password:
        message = "Email, username and password are required."
    elif not all(isinstance(value, str) for value in (email, username, password)):
        message = "Email, username and password must be strings."
    else:
        try:
            identity = await identity_client.sign_up(email, password, {"username": username})
        except AppException as e:
            logger.info("registration_rejected", email=email, reason=e.message)
            message = e.message
        else:
            logger.info("registration_succeeded", user_id=identity.id)
            message = "Account has been created."
            failed = False

    body = RegisterResponse(message=message, received=received)
    status_code = (
        status.HTTP_400_BAD_REQUEST
        if failed and settings.registration_strict_status
        else status.HTTP_200_OK
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))
