import pytest

from rag_gateway.app import create_app
from rag_gateway.config import load_settings
from rag_gateway.errors import ConfigurationError

from .conftest import ADMIN_PASS, ADMIN_URL, ADMIN_USER, INGEST_URL, QUERY_URL, SECRET

VALID_ENV = {
    "RAG_QUERY_WEBHOOK_URL": QUERY_URL,
    "RAG_INGEST_WEBHOOK_URL": INGEST_URL,
    "RAG_ADMIN_WEBHOOK_URL": ADMIN_URL,
    "RAG_WEBHOOK_SHARED_SECRET": SECRET,
    "ADMIN_BASIC_USER": ADMIN_USER,
    "ADMIN_BASIC_PASS": ADMIN_PASS,
    "SESSION_SECRET": "session-secret-0123456789",
}


class TestLoadSettings:
    """Tests for environment-driven configuration."""

    def test_valid_environment(self):
        settings = load_settings(VALID_ENV)

        assert settings.query_webhook_url == QUERY_URL
        assert settings.admin_user == ADMIN_USER
        assert settings.log_retention_days == 30
        assert settings.signature_max_skew_ms == 300_000
        assert settings.query_timeout_ms == 30_000
        assert settings.admin_timeout_ms == 120_000

    def test_optional_values_parsed(self):
        env = dict(VALID_ENV, LOG_RETENTION_DAYS="90", LOG_LEVEL="debug", LOG_JSON="false")

        settings = load_settings(env)

        assert settings.log_retention_days == 90
        assert settings.log_level == "DEBUG"
        assert settings.log_json is False

    def test_empty_value_uses_default(self):
        settings = load_settings(dict(VALID_ENV, LOG_RETENTION_DAYS=""))

        assert settings.log_retention_days == 30

    def test_missing_variables_listed(self):
        env = dict(VALID_ENV)
        del env["RAG_QUERY_WEBHOOK_URL"]
        del env["ADMIN_BASIC_PASS"]

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(env)

        message = str(exc_info.value)
        assert "RAG_QUERY_WEBHOOK_URL" in message
        assert "ADMIN_BASIC_PASS" in message

    def test_empty_required_variable_is_missing(self):
        with pytest.raises(ConfigurationError, match="SESSION_SECRET"):
            load_settings(dict(VALID_ENV, SESSION_SECRET=""))

    @pytest.mark.parametrize(
        "name,value",
        [
            ("RAG_WEBHOOK_SHARED_SECRET", "too-short"),
            ("ADMIN_BASIC_PASS", "short"),
            ("SESSION_SECRET", "short"),
            ("RAG_INGEST_WEBHOOK_URL", "not a url"),
            ("RAG_ADMIN_WEBHOOK_URL", "ftp://engine.example.com/admin"),
            ("LOG_RETENTION_DAYS", "0"),
            ("LOG_RETENTION_DAYS", "3651"),
            ("LOG_LEVEL", "chatty"),
        ],
    )
    def test_invalid_values_rejected(self, name, value):
        with pytest.raises(ConfigurationError, match=name):
            load_settings(dict(VALID_ENV, **{name: value}))

    def test_secrets_hidden_from_repr(self):
        assert SECRET not in repr(load_settings(VALID_ENV))

    def test_create_app_fails_fast(self, monkeypatch):
        for name in VALID_ENV:
            monkeypatch.delenv(name, raising=False)

        with pytest.raises(ConfigurationError):
            create_app()
