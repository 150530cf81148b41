"""API v1 router configuration."""

from fastapi import APIRouter

from arena_auth.api.v1.endpoints import auth, health

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
