"""Shared application state for route modules.

Created once in app.create_app() and injected into each router factory
and the lifecycle middleware.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from slowapi import Limiter

from ..catalog import Catalog
from ..config import Settings
from ..flag_store import FlagStore
from ..nonce import NonceManager


@dataclass
class AppState:
    """Shared state created during app startup."""

    settings: Settings
    flags: FlagStore
    catalog: Catalog
    limiter: Limiter
    nonces: NonceManager = field(default_factory=NonceManager)
