"""Health check endpoints."""

from fastapi import APIRouter, Request

from ..api_models import HealthResponse
from .state import AppState


def create_health_router(state: AppState) -> APIRouter:
    router = APIRouter(tags=["health"])
    limiter = state.limiter
    rate = state.settings.health_rate_limit

    @router.get("/")
    @limiter.limit(rate)
    async def root(request: Request):
        """Root endpoint."""
        return {"message": f"{state.settings.app_name} service is running"}

    @router.get("/health", response_model=HealthResponse)
    @limiter.limit(rate)
    async def health(request: Request) -> HealthResponse:
        """Liveness check with store wiring details."""
        return HealthResponse(
            version=state.settings.app_version,
            flag_store=type(state.flags).__name__,
            catalog_items=len(state.catalog),
            store_status_integration=state.settings.store_status_integration,
        )

    return router
