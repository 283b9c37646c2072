"""
airflow-users Settings - Configuration management using Pydantic Settings.

Loads configuration from environment variables and .env files.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Find project root (where .env file is located)
PROJECT_ROOT = Path(__file__).parent.parent


class AirflowUsersSettings(BaseSettings):
    """
    airflow-users configuration settings.

    Settings are loaded from:
    1. Environment variables (highest priority)
    2. .env file in current directory
    3. Default values (lowest priority)
    """

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="AIRFLOW_USERS_",  # All env vars must start with AIRFLOW_USERS_
    )

    # Airflow API connection
    base_url: str = Field(
        default="http://localhost:8080/api/v1",
        description="Base URL of the Airflow stable REST API (env: AIRFLOW_USERS_BASE_URL)",
    )

    username: str | None = Field(
        default=None,
        description="Username for HTTP basic auth (env: AIRFLOW_USERS_USERNAME)",
    )

    password: str | None = Field(
        default=None,
        description="Password for HTTP basic auth (env: AIRFLOW_USERS_PASSWORD)",
    )

    access_token: str | None = Field(
        default=None,
        description="Bearer token, used instead of basic auth when set (env: AIRFLOW_USERS_ACCESS_TOKEN)",
    )

    request_timeout: float = Field(
        default=30.0,
        description="HTTP request timeout in seconds (env: AIRFLOW_USERS_REQUEST_TIMEOUT)",
    )

    verify_tls: bool = Field(
        default=True,
        description="Verify TLS certificates of the Airflow API (env: AIRFLOW_USERS_VERIFY_TLS)",
    )

    # Directory paging
    page_limit: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Users fetched per page; 100 is the API maximum (env: AIRFLOW_USERS_PAGE_LIMIT)",
    )

    max_pages: int = Field(
        default=1000,
        ge=1,
        description="Upper bound on pages walked in one cache refresh (env: AIRFLOW_USERS_MAX_PAGES)",
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR) (env: AIRFLOW_USERS_LOG_LEVEL)",
    )


# Global settings instance
_settings: AirflowUsersSettings | None = None


def get_settings() -> AirflowUsersSettings:
    """
    Get the global settings instance.

    Creates the settings instance on first call, then returns cached instance.

    Returns:
        AirflowUsersSettings instance
    """
    global _settings
    if _settings is None:
        _settings = AirflowUsersSettings()
    return _settings


def reload_settings() -> AirflowUsersSettings:
    """
    Reload settings from environment/files.

    Useful for testing or when .env file changes.

    Returns:
        Fresh AirflowUsersSettings instance
    """
    global _settings
    _settings = AirflowUsersSettings()
    return _settings
