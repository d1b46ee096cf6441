"""Pydantic response models for the JSON endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    flag_store: str
    catalog_items: int = Field(ge=0)
    store_status_integration: bool


class FlagStateResponse(BaseModel):
    """Raw flag values as stored (None when never written)."""

    auto_reset_quantities: str | None = None
    drq_should_run: str | None = None
    drq_completed: str | None = None
    store_status: str | None = None
    last_action: str | None = Field(
        default=None,
        description="Action taken by the trigger evaluation for this request.",
    )
