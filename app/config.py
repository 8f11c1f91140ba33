"""
Application Configuration Module

This module uses Pydantic Settings for type-safe configuration management.

WHY Pydantic Settings?
======================
1. Type Safety: All configuration values are validated against their types
2. Environment Variables: Automatically loads from environment variables
3. .env Support: Can load from .env files for local development
4. Validation: Catches configuration errors at startup, not runtime

PATTERN: Explicit Settings Object
=================================
get_settings() returns a single cached Settings instance. The application
factory receives it explicitly (create_app(settings)) and hands the values
its components need to their constructors. Core modules under app/services
never import this module.

Usage:
    from app.config import get_settings

    settings = get_settings()
    print(settings.app_name)
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.services.versioning import ApiVersion


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Pydantic Settings automatically:
    1. Reads from environment variables (case-insensitive)
    2. Falls back to .env file if env var not found
    3. Validates types and raises errors for invalid values
    """

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------
    app_name: str = Field(
        default="Library API",
        description="Application name displayed in docs and logs"
    )
    app_description: str = Field(
        default="Through this API you can access authors and books",
        description="Description shown in every generated API document"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode (detailed errors, auto-reload)"
    )
    host: str = Field(
        default="0.0.0.0",
        description="Host to bind the server to"
    )
    port: int = Field(
        default=8001,
        description="Port to bind the server to"
    )
    environment: str = Field(
        default="development",
        description="Environment: development, staging, production"
    )
    force_https: bool = Field(
        default=False,
        description="Redirect plain HTTP requests to HTTPS"
    )

    # -------------------------------------------------------------------------
    # Documentation Metadata
    # -------------------------------------------------------------------------
    contact_name: str = Field(default="Library API maintainers")
    contact_email: str = Field(default="library-api@example.com")
    contact_url: str = Field(default="https://example.com/library-api")
    license_name: str = Field(default="MIT License")
    license_url: str = Field(default="https://opensource.org/licenses/MIT")

    # -------------------------------------------------------------------------
    # Database Settings
    # -------------------------------------------------------------------------
    database_url: str = Field(
        default="sqlite:///./library.db",
        description="SQLAlchemy connection URL"
    )
    db_pool_size: int = Field(
        default=5,
        description="Number of permanent database connections (non-SQLite only)"
    )
    db_max_overflow: int = Field(
        default=10,
        description="Maximum additional connections during high load (non-SQLite only)"
    )

    # -------------------------------------------------------------------------
    # API Versioning Settings
    # -------------------------------------------------------------------------
    api_prefix: str = Field(
        default="/api",
        description="URL prefix for all resource routers"
    )
    default_api_version: str = Field(
        default="1.0",
        description="Version assumed when a request does not designate one"
    )
    api_versions: str = Field(
        default="1.0,2.0",
        description="Comma-separated list of versions that get their own API document"
    )
    report_api_versions: bool = Field(
        default=True,
        description="Add the api-supported-versions header to versioned responses"
    )

    # -------------------------------------------------------------------------
    # CORS Settings
    # -------------------------------------------------------------------------
    allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:8080",
        description="Comma-separated list of allowed CORS origins"
    )

    # -------------------------------------------------------------------------
    # Logging Settings
    # -------------------------------------------------------------------------
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------
    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",")]

    @property
    def default_version(self) -> ApiVersion:
        """The default version as a parsed tag."""
        return ApiVersion.parse(self.default_api_version)

    @property
    def document_versions(self) -> List[ApiVersion]:
        """
        Versions that get a generated API document, sorted ascending.

        The default version is always included, even when it is missing
        from api_versions.
        """
        versions = {
            ApiVersion.parse(v) for v in self.api_versions.split(",") if v.strip()
        }
        versions.add(self.default_version)
        return sorted(versions)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """
        Validate that log_level is a valid Python logging level.

        Raises:
            ValueError: If log level is invalid
        """
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is a known value."""
        valid_envs = {"development", "staging", "production"}
        if v.lower() not in valid_envs:
            raise ValueError(f"environment must be one of {valid_envs}")
        return v.lower()

    @field_validator("default_api_version")
    @classmethod
    def validate_default_api_version(cls, v: str) -> str:
        """Normalize the default version to its "<major>.<minor>" form."""
        return str(ApiVersion.parse(v))

    @field_validator("api_versions")
    @classmethod
    def validate_api_versions(cls, v: str) -> str:
        """Every listed version must parse as a version tag."""
        for item in v.split(","):
            if item.strip():
                ApiVersion.parse(item)
        return v

    @field_validator("api_prefix")
    @classmethod
    def validate_api_prefix(cls, v: str) -> str:
        """Prefix must start with a slash and must not end with one."""
        v = v.rstrip("/")
        if v and not v.startswith("/"):
            raise ValueError("api_prefix must start with '/'")
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    The first call creates the Settings instance (loading .env and
    validating every value); subsequent calls return the cached instance.

    Returns:
        Cached Settings instance
    """
    return Settings()
