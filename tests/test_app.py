"""
Tests for the FastAPI application.

Covers health routes, the settings page actions and the per-request
trigger evaluation.
"""

import json

import pytest
from fastapi.testclient import TestClient

from default_reset_quantity.app import create_app
from default_reset_quantity.config import Settings
from default_reset_quantity.flag_store import (
    AUTO_RESET_KEY,
    COMPLETED_KEY,
    SHOULD_RUN_KEY,
    STORE_STATUS_KEY,
    InMemoryFlagStore,
    JsonFileFlagStore,
    StorageError,
)
from default_reset_quantity.lifecycle import run_lifecycle_check
from default_reset_quantity.models import TriggerAction

from .conftest import extract_nonce


def _stocks(catalog) -> dict[str, int]:
    return {item.id: item.stock for item in catalog.iter_items()}


def _post(client: TestClient, **fields):
    """POST the settings form with a freshly issued token."""
    nonce = extract_nonce(client.get("/settings").text)
    return client.post("/settings", data={"_nonce": nonce, **fields})


# =============================================================================
# HEALTH ROUTES
# =============================================================================

class TestHealthRoutes:
    def test_root_returns_message(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "Default Reset Quantity" in response.json()["message"]

    def test_health_reports_wiring(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["flag_store"] == "InMemoryFlagStore"
        assert data["catalog_items"] == 3
        assert data["store_status_integration"] is True


# =============================================================================
# SETTINGS PAGE
# =============================================================================

class TestSettingsPage:
    def test_form_renders(self, client):
        response = client.get("/settings")
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        page = response.text
        assert 'name="auto_reset_quantities"' in page
        assert 'name="reset"' in page
        assert 'name="set"' in page and "display:none" in page
        assert extract_nonce(page)

    def test_default_option_selected_is_yes(self, client):
        page = client.get("/settings").text
        assert '<option value="yes" selected="selected">' in page

    def test_stored_option_selected(self, client, flags):
        flags.set(AUTO_RESET_KEY, "no")
        page = client.get("/settings").text
        assert '<option value="no" selected="selected">' in page

    def test_each_render_issues_new_token(self, client):
        first = extract_nonce(client.get("/settings").text)
        second = extract_nonce(client.get("/settings").text)
        assert first != second

    def test_save_option(self, client, flags):
        response = _post(client, save="1", auto_reset_quantities="no")
        assert response.status_code == 200
        assert "Options saved." in response.text
        assert flags.get(AUTO_RESET_KEY) == "no"
        assert '<option value="no" selected="selected">' in response.text

    def test_save_without_value_defaults_to_yes(self, client, flags):
        flags.set(AUTO_RESET_KEY, "no")
        _post(client, save="1")
        assert flags.get(AUTO_RESET_KEY) == "yes"

    def test_save_rejects_unknown_value(self, client, flags, catalog):
        response = _post(client, save="1", reset="1", auto_reset_quantities="sometimes")
        assert response.status_code == 400
        assert "Options not saved" in response.text
        assert flags.get(AUTO_RESET_KEY) is None
        assert _stocks(catalog) == {"1": 2, "2": 10, "3": 7}

    def test_manual_reset(self, client, catalog):
        response = _post(client, reset="Manually Reset Quantities")
        assert response.status_code == 200
        assert "Reset quantities of all products" in response.text
        assert _stocks(catalog) == {"1": 5, "2": 10, "3": 0}

    def test_manual_reset_with_hidden_save_field(self, client, catalog, flags):
        """The rendered form always submits save=1 alongside the button."""
        response = _post(client, save="1", reset="x", auto_reset_quantities="yes")
        assert "Options saved." in response.text
        assert _stocks(catalog) == {"1": 5, "2": 10, "3": 0}
        assert flags.get(AUTO_RESET_KEY) == "yes"

    def test_debug_set(self, client, catalog):
        response = _post(client, set="1")
        assert "Set quantities to 100 (Debug/Test Only)" in response.text
        assert set(_stocks(catalog).values()) == {100}

    def test_debug_set_quantity_configurable(self, flags, catalog):
        app = create_app(Settings(_env_file=None, debug_set_quantity=3), flags=flags, catalog=catalog)
        _post(TestClient(app), set="1")
        assert set(_stocks(catalog).values()) == {3}

    def test_missing_token_rejected(self, client, flags, catalog):
        response = client.post("/settings", data={"save": "1", "auto_reset_quantities": "no", "reset": "1"})
        assert response.status_code == 403
        assert flags.get(AUTO_RESET_KEY) is None
        assert _stocks(catalog) == {"1": 2, "2": 10, "3": 7}

    def test_forged_token_rejected(self, client):
        response = client.post("/settings", data={"_nonce": "forged", "set": "1"})
        assert response.status_code == 403

    def test_token_is_single_use(self, client, flags):
        nonce = extract_nonce(client.get("/settings").text)
        first = client.post("/settings", data={"_nonce": nonce, "save": "1", "auto_reset_quantities": "no"})
        assert first.status_code == 200

        replay = client.post("/settings", data={"_nonce": nonce, "save": "1", "auto_reset_quantities": "yes"})
        assert replay.status_code == 403
        assert flags.get(AUTO_RESET_KEY) == "no"

    def test_form_tokens_capped(self, flags, catalog):
        settings = Settings(_env_file=None, nonce_max_tokens=1)
        client = TestClient(create_app(settings, flags=flags, catalog=catalog))
        stale = extract_nonce(client.get("/settings").text)
        fresh = extract_nonce(client.get("/settings").text)

        assert client.post("/settings", data={"_nonce": stale, "set": "1"}).status_code == 403
        assert client.post("/settings", data={"_nonce": fresh, "set": "1"}).status_code == 200

    def test_state_endpoint(self, client, flags):
        flags.set(STORE_STATUS_KEY, "open")
        response = client.get("/settings/state")
        assert response.status_code == 200
        assert response.json() == {
            "auto_reset_quantities": None,
            "drq_should_run": "no",
            "drq_completed": "no",
            "store_status": "open",
            "last_action": "idle",
        }


class TestAdminToken:
    @pytest.fixture
    def client(self, flags, catalog):
        settings = Settings(_env_file=None, admin_token="s3cret")
        return TestClient(create_app(settings, flags=flags, catalog=catalog))

    def test_settings_requires_token(self, client):
        assert client.get("/settings").status_code == 401
        assert client.get("/settings/state").status_code == 401

    def test_wrong_token(self, client):
        response = client.get("/settings", headers={"X-Admin-Token": "nope"})
        assert response.status_code == 401

    def test_correct_token(self, client, catalog):
        client.headers["X-Admin-Token"] = "s3cret"
        response = _post(client, reset="1")
        assert response.status_code == 200
        assert _stocks(catalog)["3"] == 0

    def test_health_stays_open(self, client):
        assert client.get("/health").status_code == 200


# =============================================================================
# LIFECYCLE HOOK
# =============================================================================

class TestLifecycle:
    def test_every_request_runs_the_evaluation(self, client, flags, catalog):
        flags.set(STORE_STATUS_KEY, "open")
        client.get("/health")
        assert flags.get(SHOULD_RUN_KEY) == "no"
        assert flags.get(COMPLETED_KEY) == "no"

        flags.set(STORE_STATUS_KEY, "closed")
        client.get("/health")
        assert flags.get(SHOULD_RUN_KEY) == "yes"
        assert _stocks(catalog) == {"1": 2, "2": 10, "3": 7}

        response = client.get("/settings/state")
        assert response.json()["last_action"] == "reset"
        assert _stocks(catalog) == {"1": 5, "2": 10, "3": 0}
        assert flags.get(SHOULD_RUN_KEY) == "no"
        assert flags.get(COMPLETED_KEY) == "yes"

    def test_no_status_signal_never_resets(self, client, flags, catalog):
        flags.set(SHOULD_RUN_KEY, "yes")
        flags.set(COMPLETED_KEY, "no")
        for _ in range(3):
            client.get("/health")
        assert _stocks(catalog) == {"1": 2, "2": 10, "3": 7}
        assert flags.get(COMPLETED_KEY) == "yes"

    def test_disabled_switch(self, client, flags, catalog):
        flags.set(AUTO_RESET_KEY, "no")
        flags.set(SHOULD_RUN_KEY, "yes")
        flags.set(COMPLETED_KEY, "no")
        flags.set(STORE_STATUS_KEY, "closed")
        assert client.get("/settings/state").json()["last_action"] == "disabled"
        assert _stocks(catalog) == {"1": 2, "2": 10, "3": 7}

    def test_integration_switched_off(self, flags, catalog):
        settings = Settings(_env_file=None, store_status_integration=False)
        flags.set(STORE_STATUS_KEY, "closed")
        client = TestClient(create_app(settings, flags=flags, catalog=catalog))
        assert client.get("/settings/state").json()["last_action"] == "integration_inactive"
        assert flags.get(SHOULD_RUN_KEY) is None

    def test_storage_error_propagates(self, tmp_path, catalog):
        path = tmp_path / "flags.json"
        path.write_text("not json")
        app = create_app(Settings(_env_file=None), flags=JsonFileFlagStore(path), catalog=catalog)
        with pytest.raises(StorageError):
            TestClient(app).get("/health")

    def test_run_lifecycle_check_directly(self, flags, catalog, settings):
        flags.set(SHOULD_RUN_KEY, "yes")
        flags.set(COMPLETED_KEY, "no")
        flags.set(STORE_STATUS_KEY, "closed")

        outcome = run_lifecycle_check(flags, catalog, settings)

        assert outcome.action is TriggerAction.RESET
        assert outcome.report.custom == 1
        assert outcome.report.zeroed == 1


class TestRateLimiting:
    def test_settings_rate_limit(self, flags, catalog):
        settings = Settings(_env_file=None, settings_rate_limit="2/minute")
        client = TestClient(create_app(settings, flags=flags, catalog=catalog))

        assert client.get("/settings").status_code == 200
        assert client.get("/settings").status_code == 200
        assert client.get("/settings").status_code == 429

    def test_limits_are_per_app(self, flags, catalog):
        settings = Settings(_env_file=None, health_rate_limit="1/minute")
        for _ in range(2):
            client = TestClient(create_app(settings, flags=flags, catalog=catalog))
            assert client.get("/health").status_code == 200


class TestAppFromSettings:
    def test_builds_stores_from_paths(self, tmp_path):
        flag_path = tmp_path / "flags.json"
        flag_path.write_text(json.dumps({"store_status": "open"}))
        catalog_path = tmp_path / "catalog.csv"
        catalog_path.write_text("id,stock,default_reset_quantity\nA,1,4\nB,3,\n")

        settings = Settings(
            _env_file=None,
            flag_store_path=str(flag_path),
            catalog_path=str(catalog_path),
        )
        client = TestClient(create_app(settings))

        data = client.get("/health").json()
        assert data["flag_store"] == "JsonFileFlagStore"
        assert data["catalog_items"] == 2
        assert json.loads(flag_path.read_text())[COMPLETED_KEY] == "no"

    def test_in_memory_defaults(self):
        client = TestClient(create_app(Settings(_env_file=None)))
        data = client.get("/health").json()
        assert data["flag_store"] == "InMemoryFlagStore"
        assert data["catalog_items"] == 0
