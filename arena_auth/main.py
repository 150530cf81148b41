"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from firebase_admin.exceptions import FirebaseError
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException

from arena_auth.api.v1.router import api_router
from arena_auth.config import settings
from arena_auth.core import background
from arena_auth.core.exceptions import AppException
from arena_auth.core.firebase import initialize_firebase
from arena_auth.core.redis_client import check_redis_connection, close_redis_connection
from arena_auth.database import check_database_connection, engine
from arena_auth.middleware.error_handler import (
    app_exception_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from arena_auth.middleware.logging import LoggingMiddleware, configure_logging

configure_logging()
logger = structlog.get_logger()


async def _startup() -> None:
    # A missing collaborator is logged, not fatal; /health/detailed reports it
    try:
        initialize_firebase(settings.firebase_credentials_path, settings.firebase_config_json)
    except (ValueError, OSError, FirebaseError) as e:
        logger.warning(
            "firebase_unavailable",
            error=str(e),
            note="Registration and username login fail until Firebase is configured.",
        )

    if not await check_database_connection():
        logger.error("profile_directory_unavailable")

    if settings.rate_limit_enabled and not await run_in_threadpool(check_redis_connection):
        logger.warning("rate_limiter_unavailable", note="Login attempts are not limited.")


async def _shutdown() -> None:
    # Registration answers before its profile write finishes
    await background.drain()
    await engine.dispose()
    close_redis_connection()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Check collaborators on startup; flush profile writes and close pools on shutdown."""
    logger.info("application_startup", environment=settings.environment)
    await _startup()
    yield
    logger.info("application_shutdown", pending_background_tasks=background.pending_count())
    await _shutdown()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Login, registration and game token service for the Dodge arena",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)

exception_handlers = {
    AppException: app_exception_handler,
    StarletteHTTPException: http_exception_handler,
    RequestValidationError: validation_exception_handler,
    Exception: general_exception_handler,
}
for exc_class, handler in exception_handlers.items():
    app.add_exception_handler(exc_class, handler)  # type: ignore[arg-type]

app.include_router(api_router, prefix=settings.api_v1_prefix)

Instrumentator(
    should_group_status_codes=True,
    excluded_handlers=["/docs", "/redoc", "/openapi.json", "/metrics"],
).instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "api": settings.api_v1_prefix,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "arena_auth.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )
