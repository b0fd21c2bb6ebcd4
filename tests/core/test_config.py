"""Tests for settings loading in core.config."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from src.moneyview_api.core.config import Settings, normalize_database_url

_CONNECTION_ENV_NAMES = (
    "PostgresConnection",
    "ConnectionStrings__PostgresConnection",
    "POSTGRES_URL",
    "DATABASE_URL",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every connection-string variable for the duration of a test."""
    for name in _CONNECTION_ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
        monkeypatch.delenv(name.upper(), raising=False)
    return monkeypatch


def _load() -> Settings:
    return Settings(_env_file=None)


class TestConnectionString:
    def test_missing_connection_string_fails(self, clean_env: pytest.MonkeyPatch) -> None:
        with pytest.raises(ValidationError, match="connection string not found"):
            _load()

    def test_postgres_url_env(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("POSTGRES_URL", "postgresql+asyncpg://u:p@db:5432/leads")
        assert _load().DATABASE_URL == "postgresql+asyncpg://u:p@db:5432/leads"

    def test_postgres_connection_key_wins_over_postgres_url(
        self, clean_env: pytest.MonkeyPatch
    ) -> None:
        clean_env.setenv("PostgresConnection", "postgresql+asyncpg://u:p@primary/leads")
        clean_env.setenv("POSTGRES_URL", "postgresql+asyncpg://u:p@fallback/leads")
        assert _load().DATABASE_URL == "postgresql+asyncpg://u:p@primary/leads"

    def test_aspnet_style_key(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv(
            "ConnectionStrings__PostgresConnection",
            "Host=db;Port=5432;Username=app;Password=secret;Database=leads",
        )
        assert _load().DATABASE_URL == "postgresql+asyncpg://app:secret@db:5432/leads"

    def test_explicit_value(self, clean_env: pytest.MonkeyPatch) -> None:
        settings = Settings(_env_file=None, DATABASE_URL="postgres://u:p@h/d")
        assert settings.DATABASE_URL == "postgresql+asyncpg://u:p@h/d"


class TestNormalizeDatabaseUrl:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("postgres://u:p@h:5432/d", "postgresql+asyncpg://u:p@h:5432/d"),
            ("postgresql://u:p@h/d", "postgresql+asyncpg://u:p@h/d"),
            ("postgresql+asyncpg://u:p@h/d", "postgresql+asyncpg://u:p@h/d"),
            ("sqlite+aiosqlite:///:memory:", "sqlite+aiosqlite:///:memory:"),
            ("", ""),
        ],
    )
    def test_urls(self, raw: str, expected: str) -> None:
        assert normalize_database_url(raw) == expected

    def test_npgsql_keywords_are_case_insensitive(self) -> None:
        raw = "server=db; user id=app; pwd=s3cret; initial catalog=leads;"
        assert normalize_database_url(raw) == "postgresql+asyncpg://app:s3cret@db/leads"

    def test_npgsql_password_is_escaped(self) -> None:
        url = normalize_database_url("Host=db;Username=app;Password=p@ss;Database=leads")
        assert url == "postgresql+asyncpg://app:p%40ss@db/leads"

    def test_npgsql_without_host_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="Host"):
            normalize_database_url("Username=app;Password=x")

    def test_malformed_segment_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="Malformed"):
            normalize_database_url("Host=db;garbage")

    @pytest.mark.parametrize(
        ("ssl_segment", "expected_ssl"),
        [
            ("SSL Mode=Require", "require"),
            ("SslMode=Disable", "disable"),
            ("SSL Mode=VerifyFull", "verify-full"),
            ("sslmode=verify-ca", "verify-ca"),
        ],
    )
    def test_npgsql_ssl_mode_is_kept(self, ssl_segment: str, expected_ssl: str) -> None:
        raw = f"Host=db;Port=5432;Username=u;Password=p;Database=d;{ssl_segment}"
        assert normalize_database_url(raw) == f"postgresql+asyncpg://u:p@db:5432/d?ssl={expected_ssl}"

    def test_trust_server_certificate_is_accepted(self) -> None:
        raw = "Host=db;Username=u;Password=p;Database=d;SSL Mode=Require;Trust Server Certificate=true"
        assert normalize_database_url(raw) == "postgresql+asyncpg://u:p@db/d?ssl=require"

    def test_unknown_ssl_mode_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="SSL Mode"):
            normalize_database_url("Host=db;SSL Mode=Sometimes")

    def test_unknown_keyword_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="Search Path"):
            normalize_database_url("Host=db;Database=d;Search Path=leads")

    def test_unknown_keyword_fails_settings(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("PostgresConnection", "Host=db;Database=d;Pooling=true")
        with pytest.raises(ValidationError, match="Pooling"):
            _load()


class TestSettings:
    def test_defaults(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("POSTGRES_URL", "sqlite+aiosqlite:///:memory:")
        clean_env.delenv("PORT", raising=False)
        settings = _load()
        assert settings.INGEST_API_KEY == "moneyview"
        assert settings.INGEST_API_KEY_HEADER == "api-key"
        assert settings.PORT == 8080
        assert settings.is_sqlite

    def test_port_from_environment(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("POSTGRES_URL", "sqlite+aiosqlite:///:memory:")
        clean_env.setenv("PORT", "5000")
        assert _load().PORT == 5000

    def test_settings_are_immutable(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("POSTGRES_URL", "sqlite+aiosqlite:///:memory:")
        settings = _load()
        with pytest.raises(ValidationError):
            settings.INGEST_API_KEY = "changed"

    def test_debug_forbidden_in_production(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("POSTGRES_URL", "postgresql+asyncpg://u:p@db/leads")
        clean_env.setenv("APP_ENV", "production")
        clean_env.setenv("DEBUG", "true")
        with pytest.raises(ValidationError, match="DEBUG"):
            _load()
