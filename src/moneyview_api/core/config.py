"""Application Configuration Module.

Implements 12-factor app configuration using pydantic-settings.
All configuration is loaded from environment variables with sensible defaults.

Environment file loading priority:
1. If APP_ENV is set, loads .env.{APP_ENV} (e.g., .env.dev, .env.prod)
2. Falls back to .env if specific file doesn't exist
3. Environment variables always override file values

The database connection string is accepted under the names used by the
partner deployments: ``PostgresConnection`` (or its ASP.NET-style
``ConnectionStrings__PostgresConnection`` spelling), ``POSTGRES_URL`` and
``DATABASE_URL``. Settings construction fails when none of them is set, so
the process never starts without a database.
"""
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL

# Npgsql connection-string keywords → SQLAlchemy URL components.
_NPGSQL_KEYWORDS: dict[str, str] = {
    "host": "host",
    "server": "host",
    "port": "port",
    "username": "username",
    "user id": "username",
    "userid": "username",
    "user": "username",
    "uid": "username",
    "password": "password",
    "pwd": "password",
    "database": "database",
    "initial catalog": "database",
    "db": "database",
}


# Npgsql ``SSL Mode`` values → asyncpg ``ssl`` query argument.
_NPGSQL_SSL_MODES: dict[str, str] = {
    "disable": "disable",
    "allow": "allow",
    "prefer": "prefer",
    "require": "require",
    "verifyca": "verify-ca",
    "verify-ca": "verify-ca",
    "verifyfull": "verify-full",
    "verify-full": "verify-full",
}

# Keywords accepted without effect: asyncpg's ``require`` mode already skips
# certificate verification.
_NPGSQL_IGNORED_KEYWORDS = frozenset({"trust server certificate", "trustservercertificate"})


def _get_env_file() -> str | tuple[str, ...]:
    """
    Determine which .env file(s) to load based on APP_ENV.

    Returns:
        Tuple of env file paths to load (later files override earlier)
    """
    app_env = os.getenv("APP_ENV", "").lower()

    env_to_file = {
        "dev": "dev",
        "development": "dev",
        "prod": "prod",
        "production": "prod",
        "staging": "staging",
        "test": "test",
    }

    file_suffix = env_to_file.get(app_env, app_env)

    env_files: list[str] = []

    if Path(".env").exists():
        env_files.append(".env")

    if file_suffix:
        env_specific = f".env.{file_suffix}"
        if Path(env_specific).exists():
            env_files.append(env_specific)

    if env_files:
        return tuple(env_files)
    return ".env"  # Default even if doesn't exist


def normalize_database_url(raw: str) -> str:
    """Convert a configured connection string into an async SQLAlchemy URL.

    Accepts:
    - SQLAlchemy URLs with an explicit driver (returned unchanged)
    - ``postgres://`` / ``postgresql://`` URLs (rewritten to ``postgresql+asyncpg``)
    - Npgsql key/value strings, e.g.
      ``Host=db;Port=5432;Username=app;Password=secret;Database=leads``.
      ``SSL Mode`` becomes asyncpg's ``ssl`` query argument; any keyword
      this service cannot honour raises ``ValueError``.
    """
    value = raw.strip()
    if not value:
        return value

    if "://" in value:
        scheme, rest = value.split("://", 1)
        if scheme in ("postgres", "postgresql"):
            return f"postgresql+asyncpg://{rest}"
        return value

    parts: dict[str, str] = {}
    query: dict[str, str] = {}
    for segment in value.split(";"):
        if not segment.strip():
            continue
        key, sep, val = segment.partition("=")
        if not sep:
            raise ValueError(f"Malformed connection string segment: {segment!r}")
        keyword = key.strip().lower()
        val = val.strip()
        if keyword in ("ssl mode", "sslmode"):
            mode = _NPGSQL_SSL_MODES.get(val.lower())
            if mode is None:
                raise ValueError(f"Unsupported SSL Mode: {val!r}")
            query["ssl"] = mode
        elif keyword in _NPGSQL_KEYWORDS:
            parts[_NPGSQL_KEYWORDS[keyword]] = val
        elif keyword not in _NPGSQL_IGNORED_KEYWORDS:
            raise ValueError(f"Unsupported connection string keyword: {key.strip()!r}")

    if "host" not in parts:
        raise ValueError("Connection string must specify Host")

    port = parts.get("port")
    url = URL.create(
        "postgresql+asyncpg",
        username=parts.get("username"),
        password=parts.get("password"),
        host=parts["host"],
        port=int(port) if port else None,
        database=parts.get("database"),
        query=query,
    )
    return url.render_as_string(hide_password=False)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    The instance is immutable; handlers receive it through
    ``Depends(get_settings)``.
    """

    model_config = SettingsConfigDict(
        env_file=_get_env_file(),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    # ========================================
    # Application Settings
    # ========================================
    APP_NAME: str = Field(
        default="moneyview-bulk-api",
        description="Application name used in logging"
    )
    APP_VERSION: str = Field(
        default="1.0.0",
        description="Semantic version of the application"
    )
    APP_ENV: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment"
    )
    DEBUG: bool = Field(
        default=False,
        description="Expose internal error messages in 500 responses"
    )

    # ========================================
    # Server Configuration
    # ========================================
    HOST: str = Field(default="0.0.0.0", description="Server host")
    PORT: int = Field(default=8080, ge=1, le=65535, description="Server port")
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level"
    )

    # ========================================
    # Database Configuration (PostgreSQL)
    # ========================================
    DATABASE_URL: str = Field(
        default="",
        validation_alias=AliasChoices(
            "PostgresConnection",
            "ConnectionStrings__PostgresConnection",
            "POSTGRES_URL",
            "DATABASE_URL",
        ),
        description="PostgreSQL connection string (URL or Npgsql key/value form). Required."
    )
    DATABASE_POOL_SIZE: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Database connection pool size"
    )
    DATABASE_MAX_OVERFLOW: int = Field(
        default=10,
        ge=0,
        description="Max overflow connections beyond pool size"
    )
    DATABASE_POOL_TIMEOUT: int = Field(
        default=30,
        ge=1,
        description="Timeout for getting connection from pool (seconds)"
    )
    DATABASE_ECHO: bool = Field(
        default=False,
        description="Echo SQL statements to logs"
    )

    # ========================================
    # Ingestion Security
    # ========================================
    INGEST_API_KEY: str = Field(
        default="moneyview",
        min_length=1,
        description="Shared secret partners send in the api-key header"
    )
    INGEST_API_KEY_HEADER: str = Field(
        default="api-key",
        min_length=1,
        description="Name of the header carrying the shared secret"
    )

    # ========================================
    # Computed Properties
    # ========================================
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.APP_ENV == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.APP_ENV == "development"

    @property
    def is_sqlite(self) -> bool:
        """SQLite URLs are only used by the test-suite and local smoke runs."""
        return self.DATABASE_URL.startswith("sqlite")

    # ========================================
    # Validators
    # ========================================
    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Normalise any accepted connection-string form to an async URL."""
        return normalize_database_url(v)

    @model_validator(mode="after")
    def validate_required_settings(self) -> "Settings":
        """Refuse to build settings without a database or with debug in production."""
        if not self.DATABASE_URL:
            raise ValueError(
                "PostgreSQL connection string not found! "
                "Set PostgresConnection or POSTGRES_URL."
            )
        if self.is_production and self.DEBUG:
            raise ValueError("DEBUG must be False in production")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the cached application settings instance.

    ``lru_cache`` ensures ``Settings()`` is constructed exactly once and can be
    reset in tests via ``get_settings.cache_clear()``.
    """
    return Settings()
