"""
API Routes.

Router factories take the shared AppState and are registered in
app.create_app().
"""

from .health import create_health_router
from .settings_page import create_settings_router
from .state import AppState

__all__ = ["AppState", "create_health_router", "create_settings_router"]
