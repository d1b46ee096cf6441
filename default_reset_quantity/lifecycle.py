"""Per-request lifecycle hook.

``run_lifecycle_check`` is the once-per-request entry point for the
trigger evaluator. ``LifecycleMiddleware`` calls it before every
request reaches its route.
"""

from __future__ import annotations

import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from .catalog import Catalog
from .config import Settings
from .flag_store import FlagStore, StorageError
from .models import TriggerOutcome
from .reset import reset_quantities
from .routes.state import AppState
from .trigger import evaluate

logger = logging.getLogger("drq.lifecycle")


def run_lifecycle_check(
    flags: FlagStore,
    catalog: Catalog,
    settings: Settings,
) -> TriggerOutcome:
    """Evaluate the reset trigger once, resetting the catalog if due."""
    return evaluate(
        flags,
        lambda: reset_quantities(catalog),
        auto_reset_default=settings.auto_reset_default,
        integration_active=settings.store_status_integration,
    )


class LifecycleMiddleware(BaseHTTPMiddleware):
    """Runs the trigger evaluation at the start of each request."""

    def __init__(self, app, state: AppState):
        super().__init__(app)
        self.state = state

    async def dispatch(self, request: Request, call_next):
        try:
            outcome = run_lifecycle_check(
                self.state.flags, self.state.catalog, self.state.settings
            )
        except StorageError as e:
            logger.error("Trigger evaluation failed for %s: %s", request.url.path, e)
            raise

        logger.debug("Trigger evaluation for %s: %s", request.url.path, outcome.action.value)
        request.state.trigger_outcome = outcome
        return await call_next(request)
