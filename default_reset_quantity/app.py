"""
Default Reset Quantity - FastAPI Application Entry Point

Resets catalog stock to per-item default quantities once per store
closing, with a settings page for manual resets.

Endpoints:
    GET  /                 - root message
    GET  /health           - liveness check
    GET  /settings         - options form
    POST /settings         - save option / manual reset / debug set
    GET  /settings/state   - current flag values
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .catalog import Catalog, InMemoryCatalog, load_catalog_csv
from .config import Settings, get_settings
from .flag_store import FlagStore, InMemoryFlagStore, JsonFileFlagStore
from .lifecycle import LifecycleMiddleware
from .nonce import NonceManager
from .rate_limiting import create_limiter
from .routes import AppState, create_health_router, create_settings_router

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("drq.app")


def _build_flag_store(settings: Settings) -> FlagStore:
    if settings.flag_store_path:
        logger.info(f"Using JSON flag store at {settings.flag_store_path}")
        return JsonFileFlagStore(settings.flag_store_path)
    logger.warning("FLAG_STORE_PATH not configured, flags will not survive a restart")
    return InMemoryFlagStore()


def _build_catalog(settings: Settings) -> Catalog:
    if settings.catalog_path:
        return load_catalog_csv(settings.catalog_path)
    logger.info("CATALOG_PATH not configured, starting with an empty catalog")
    return InMemoryCatalog()


def create_app(
    settings: Optional[Settings] = None,
    flags: Optional[FlagStore] = None,
    catalog: Optional[Catalog] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``flags`` and ``catalog`` are normally built from settings; pass
    them in to plug the service into a host's own stores.
    """
    if settings is None:
        settings = get_settings()
    if flags is None:
        flags = _build_flag_store(settings)
    if catalog is None:
        catalog = _build_catalog(settings)

    state = AppState(
        settings=settings,
        flags=flags,
        catalog=catalog,
        limiter=create_limiter(settings),
        nonces=NonceManager(
            ttl_seconds=settings.nonce_ttl_seconds,
            max_tokens=settings.nonce_max_tokens,
        ),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info(f"Starting {settings.app_name} v{settings.app_version}")
        logger.info(f"Catalog items: {len(catalog)}")
        yield
        logger.info(f"Shutting down {settings.app_name}")

    app = FastAPI(
        title=settings.app_name,
        description="Resets product stock to default quantities on store close",
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "health", "description": "Health checks"},
            {"name": "settings", "description": "Options page and manual resets"},
        ],
    )
    app.state.drq = state

    # Rate limiting
    app.state.limiter = state.limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Trigger evaluation on every request
    app.add_middleware(LifecycleMiddleware, state=state)

    # Include routes
    app.include_router(create_health_router(state))
    app.include_router(create_settings_router(state))

    return app
