"""
Shared configuration management for the Google Analytics exporter.

Process-level settings come from the environment. The exporter's own
YAML configuration (metrics, dimensions, view id, port) is loaded by
``service_ga_exporter.app.config.loader``.
"""

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_REALTIME_API_URL = "https://www.googleapis.com/analytics/v3/data/realtime"


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="GA_EXPORTER_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")
    host: str = Field(default="0.0.0.0")


class ExporterSettings(BaseConfig):
    """Exporter-specific configuration."""

    service_name: str = "ga-exporter"

    # Input files, unprefixed for existing deployment manifests
    config_file: str = Field(
        default="config/conf.yaml",
        validation_alias=AliasChoices("CONFIG_FILE", "GA_EXPORTER_CONFIG_FILE"),
    )
    cred_file: str = Field(
        default="config/ga_creds.json",
        validation_alias=AliasChoices("CRED_FILE", "GA_EXPORTER_CRED_FILE"),
    )

    # Data source
    api_url: str = Field(default=DEFAULT_REALTIME_API_URL)
    request_timeout_seconds: Optional[float] = Field(default=None)

    # Exported series
    job_label: str = Field(default="googleAnalytics")

    # Poll loop policies
    fatal_fetch_errors: bool = Field(default=False)
    skip_in_flight: bool = Field(default=False)


def get_settings(**overrides) -> ExporterSettings:
    """Get exporter settings, optionally overriding values."""
    return ExporterSettings(**overrides)
