"""
Settings page.

GET  /settings        - options form (auto reset on/off, manual reset)
POST /settings        - handle save / reset / set (debug) actions
GET  /settings/state  - current flag values as JSON

SECURITY:
- Every POST must carry a single-use form token issued by GET /settings
- Optional admin token header when ADMIN_TOKEN is configured
"""

import html
import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse

from ..api_models import FlagStateResponse
from ..config import Settings
from ..flag_store import AUTO_RESET_KEY, read_state, write_flag
from ..models import YesNo
from ..reset import reset_quantities, set_quantities
from .state import AppState

logger = logging.getLogger("drq.routes.settings")

NONCE_ACTION = "default-reset-quantity"
NONCE_FIELD = "_nonce"


def _get_admin_dependency(settings: Settings):
    """Create the admin check for settings routes.

    Without ADMIN_TOKEN configured the page is open (the host is
    expected to restrict access).
    """

    async def require_admin(request: Request) -> None:
        if not settings.admin_token:
            return
        provided = request.headers.get("X-Admin-Token", "")
        if not secrets.compare_digest(provided, settings.admin_token):
            logger.warning("Settings access denied for %s", request.url.path)
            raise HTTPException(status_code=401, detail="Admin token required")

    return require_admin


def render_settings_page(
    auto_reset: YesNo,
    nonce: str,
    action_url: str,
    messages: list[str] = (),
    app_name: str = "Default Reset Quantity",
) -> str:
    """Build the options page HTML."""
    notices = "".join(f"<div><p>{html.escape(m)}</p></div>" for m in messages)

    def selected(value: YesNo) -> str:
        return ' selected="selected"' if auto_reset is value else ""

    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{html.escape(app_name)}</title>
</head>
<body>
    {notices}
    <h3>{html.escape(app_name)}</h3>
    <form action="{html.escape(action_url)}" method="post">
        Reset Quantities Automatically on All Store Closes:
        <select name="auto_reset_quantities">
            <option value="yes"{selected(YesNo.YES)}>Yes (Reset automatically every close)</option>
            <option value="no"{selected(YesNo.NO)}>No (Resets will need to be performed manually)</option>
        </select>

        <div style="height: 20px;"></div>

        <input class="button-primary" type="submit" name="SAVE" value="Save Options" id="submitbutton" />
        <input type="hidden" name="save" value="1" />
        <input type="hidden" id="{NONCE_FIELD}" name="{NONCE_FIELD}" value="{html.escape(nonce)}" />

        <div style="height: 20px;"></div>

        <input class="button-primary" type="submit" name="reset" value="Manually Reset Quantities" id="resetbutton" />
        <input class="button-primary" type="submit" name="set" value="Set Product Quantities (Debug/Test Only)" id="setbutton" style="display:none" />
    </form>
</body>
</html>
"""


def create_settings_router(state: AppState) -> APIRouter:
    router = APIRouter(tags=["settings"])
    limiter = state.limiter
    rate = state.settings.settings_rate_limit
    require_admin = _get_admin_dependency(state.settings)

    def _current_auto_reset() -> YesNo:
        return read_state(state.flags, state.settings.auto_reset_default).auto_reset

    def _page(request: Request, messages: list[str], status_code: int = 200) -> HTMLResponse:
        content = render_settings_page(
            _current_auto_reset(),
            state.nonces.issue(NONCE_ACTION),
            request.url.path,
            messages,
            app_name=state.settings.app_name,
        )
        return HTMLResponse(content=content, status_code=status_code)

    @router.get("/settings", response_class=HTMLResponse, dependencies=[Depends(require_admin)])
    @limiter.limit(rate)
    async def settings_page(request: Request):
        """Render the options form."""
        return _page(request, [])

    @router.post("/settings", response_class=HTMLResponse, dependencies=[Depends(require_admin)])
    @limiter.limit(rate)
    async def submit_settings(
        request: Request,
        save: Optional[str] = Form(default=None),
        reset: Optional[str] = Form(default=None),
        set_: Optional[str] = Form(default=None, alias="set"),
        auto_reset_quantities: Optional[str] = Form(default=None),
        nonce: Optional[str] = Form(default=None, alias=NONCE_FIELD),
    ):
        """
        Handle the options form.

        Actions run in order: reset, set (debug), save. A save without a
        value keeps the form default of "yes".
        """
        if not state.nonces.consume(nonce, NONCE_ACTION):
            logger.warning("Rejected settings POST with invalid form token")
            raise HTTPException(status_code=403, detail="Invalid or expired form token")

        new_value: YesNo | None = None
        if save is not None:
            raw = auto_reset_quantities if auto_reset_quantities is not None else YesNo.YES.value
            try:
                new_value = YesNo(raw)
            except ValueError:
                logger.warning("Rejected invalid auto_reset_quantities value %r", raw)
                return _page(
                    request,
                    [f"Invalid value for auto reset: {raw}. Options not saved."],
                    status_code=400,
                )

        messages = []
        if reset is not None:
            report = reset_quantities(state.catalog)
            messages.append(
                f"Reset quantities of all products "
                f"({report.custom} to default quantity, {report.zeroed} to zero)"
            )

        if set_ is not None:
            set_quantities(state.catalog, state.settings.debug_set_quantity)
            messages.append(
                f"Set quantities to {state.settings.debug_set_quantity} (Debug/Test Only)"
            )

        if new_value is not None:
            if write_flag(state.flags, AUTO_RESET_KEY, new_value):
                logger.info("auto_reset_quantities set to %s", new_value.value)
            messages.append("Options saved.")

        return _page(request, messages)

    @router.get(
        "/settings/state",
        response_model=FlagStateResponse,
        dependencies=[Depends(require_admin)],
    )
    @limiter.limit(rate)
    async def settings_state(request: Request) -> FlagStateResponse:
        """Current flag values, as stored."""
        outcome = getattr(request.state, "trigger_outcome", None)
        return FlagStateResponse(
            **state.flags.snapshot(),
            last_action=outcome.action.value if outcome else None,
        )

    return router
