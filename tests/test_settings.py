"""
Tests for configuration loading.
"""

import pytest
from datetime import date

from pydantic import ValidationError

from budget_sync.config import (
    AppSettings,
    SheetsEndpointSettings,
    get_settings,
    validate_all_settings,
)
from budget_sync.orchestrator import create_app_components


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    # Keep a developer's .env out of the way
    monkeypatch.chdir(tmp_path)
    for name in (
        "BUDGET_SHEETS_BASE_URL",
        "BUDGET_SHEETS_SECRET",
        "BUDGET_SHEETS_TIMEOUT_SECONDS",
        "FETCH_LIMIT",
        "SUMMARY_MONTHS",
        "SEED_DEFAULTS_ON_EMPTY",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSheetsEndpointSettings:
    """Tests for endpoint settings."""

    def test_loads_from_environment(self, monkeypatch):
        """URL and secret come from BUDGET_SHEETS_* variables."""
        monkeypatch.setenv("BUDGET_SHEETS_BASE_URL", "https://script.example.com/exec")
        monkeypatch.setenv("BUDGET_SHEETS_SECRET", "s3cret")

        settings = SheetsEndpointSettings()

        assert settings.base_url == "https://script.example.com/exec"
        assert settings.secret.get_secret_value() == "s3cret"
        assert settings.timeout_seconds == 5.0

    def test_secret_is_masked(self):
        """The secret never shows up in reprs."""
        settings = SheetsEndpointSettings(base_url="https://x.example.com", secret="s3cret")
        assert "s3cret" not in repr(settings)

    def test_rejects_non_http_url(self):
        """Only http(s) endpoints are accepted."""
        with pytest.raises(ValidationError):
            SheetsEndpointSettings(base_url="ftp://x.example.com", secret="s")

    def test_missing_configuration(self):
        """Without URL and secret the settings fail to load."""
        with pytest.raises(ValidationError):
            SheetsEndpointSettings()


class TestAppSettings:
    """Tests for application settings."""

    def test_defaults(self):
        """Test default values."""
        settings = AppSettings()
        assert settings.fetch_limit == 300
        assert settings.summary_months == 12
        assert settings.seed_defaults_on_empty is True

    def test_fetch_limit_bounds(self, monkeypatch):
        """fetch_limit must be positive."""
        monkeypatch.setenv("FETCH_LIMIT", "0")
        with pytest.raises(ValidationError):
            AppSettings()


class TestValidateAllSettings:
    """Tests for the startup check."""

    def test_reports_missing_endpoint(self):
        """A missing endpoint is reported, not raised."""
        results = validate_all_settings()

        assert results["sheets"] is False
        assert "sheets_error" in results
        assert results["app"] is True


class TestCreateAppComponents:
    """Tests for wiring settings into the flows."""

    def test_summary_months_reaches_summary_flow(self, monkeypatch):
        """SUMMARY_MONTHS sizes the month picker."""
        monkeypatch.setenv("BUDGET_SHEETS_BASE_URL", "https://script.example.com/exec")
        monkeypatch.setenv("BUDGET_SHEETS_SECRET", "s3cret")
        monkeypatch.setenv("SUMMARY_MONTHS", "6")

        _, summary_flow, _ = create_app_components()

        assert len(summary_flow.available_months(date(2025, 5, 1))) == 6

    def test_local_only_without_endpoint(self):
        """Missing endpoint settings mean no summary flow."""
        ledger_flow, summary_flow, sync_client = create_app_components()

        assert summary_flow is None
        assert sync_client is None
        assert ledger_flow.store.list_categories()
