"""Exception handlers rendering errors as ``{error, message, path}``."""

import structlog
from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from arena_auth.core.exceptions import AppException

logger = structlog.get_logger(__name__)


def _error_body(request: Request, error: str, message: object) -> dict:
    return {"error": error, "message": message, "path": str(request.url)}


def _is_unreadable_body(error: dict) -> bool:
    if error.get("type") == "json_invalid":
        return True
    return error.get("type") == "missing" and tuple(error.get("loc", ())) == ("body",)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle application and domain exceptions with their own status code."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.__class__.__name__, exc.message),
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, "HTTPException", exc.detail),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """
    Handle validation errors.

    A missing body or one that is not valid JSON gets 400 "Invalid JSON
    body"; other validation failures get 422 with details.
    """
    errors = exc.errors()
    if any(_is_unreadable_body(error) for error in errors):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body(request, "InvalidJSON", "Invalid JSON body"),
        )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            **_error_body(request, "ValidationError", "Request validation failed"),
            "details": jsonable_encoder(errors),
        },
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error("unhandled_exception", path=request.url.path, error=str(exc), exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(request, "InternalServerError", "An unexpected error occurred"),
    )
