"""Unit tests for server configuration settings model.

Settings are bound from environment variables; grouped views are derived
from the same values.
"""

import pytest

from disaster_tracking.server.core.config import CORSConfig, PostgreSQLConfig, Settings


@pytest.fixture
def settings_factory():
    def make() -> Settings:
        return Settings(_env_file=None)

    return make


class TestSettingsBinding:
    """Test Settings model environment variable binding."""

    def test_server_binding(self, settings_factory, monkeypatch):
        monkeypatch.setenv("DTS_SERVER_HOST", "127.0.0.1")
        monkeypatch.setenv("DTS_SERVER_PORT", "9000")
        monkeypatch.setenv("DTS_LOG_LEVEL", "debug")

        settings = settings_factory()

        assert settings.server_host == "127.0.0.1"
        assert settings.server_port == 9000
        assert settings.log_level.upper() == "DEBUG"

    def test_database_url_binding(self, settings_factory):
        """The test run points DATABASE_URL at SQLite."""
        settings = settings_factory()
        assert settings.database_url.startswith("sqlite+aiosqlite")

    def test_auth_binding(self, settings_factory, monkeypatch):
        monkeypatch.setenv("DTS_SESSION_COOKIE", "sid")
        monkeypatch.setenv("DTS_SESSION_TIMEOUT_MINUTES", "5")
        monkeypatch.setenv("DTS_BCRYPT_ROUNDS", "12")

        settings = settings_factory()

        assert settings.session_cookie_name == "sid"
        assert settings.session_timeout_minutes == 5
        assert settings.bcrypt_rounds == 12

    def test_bcrypt_rounds_bounds(self, settings_factory, monkeypatch):
        monkeypatch.setenv("DTS_BCRYPT_ROUNDS", "3")
        with pytest.raises(ValueError):
            settings_factory()

    def test_create_tables_flag(self, settings_factory, monkeypatch):
        monkeypatch.setenv("DTS_CREATE_TABLES", "true")
        assert settings_factory().create_tables is True

    def test_case_sensitive_names(self, settings_factory, monkeypatch):
        monkeypatch.setenv("dts_server_port", "9999")
        assert settings_factory().server_port != 9999


class TestSettingsDefaults:
    def test_defaults(self, settings_factory, monkeypatch):
        for name in ("DTS_SERVER_PORT", "DTS_SESSION_COOKIE", "DTS_SESSION_TIMEOUT_MINUTES", "DTS_DEFAULT_CURRENCY"):
            monkeypatch.delenv(name, raising=False)

        settings = settings_factory()

        assert settings.server_port == 8000
        assert settings.session_cookie_name == "dts_session"
        assert settings.session_timeout_minutes == 40
        assert settings.default_currency == "USD"


class TestGroupedConfigs:
    def test_postgres_config(self, settings_factory, monkeypatch):
        monkeypatch.setenv("POSTGRES_USER", "dts_user")
        monkeypatch.setenv("POSTGRES_PASSWORD", "secret")
        monkeypatch.setenv("POSTGRES_HOST", "db")
        monkeypatch.setenv("POSTGRES_PORT", "6543")
        monkeypatch.setenv("POSTGRES_DB", "dts_test")

        postgres = settings_factory().postgres

        assert isinstance(postgres, PostgreSQLConfig)
        assert postgres.url == "postgresql+asyncpg://dts_user:secret@db:6543/dts_test"

    def test_cors_config(self, settings_factory, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", '["https://dts.example.org"]')
        monkeypatch.setenv("CORS_ALLOW_CREDENTIALS", "false")

        cors = settings_factory().cors

        assert isinstance(cors, CORSConfig)
        assert cors.origins == ["https://dts.example.org"]
        assert cors.allow_credentials is False

    def test_config_models_accept_field_names(self):
        assert PostgreSQLConfig(host="localhost", port=5433).url.endswith("@localhost:5433/dts")
        assert CORSConfig(origins=["*"]).allow_methods == ["*"]
