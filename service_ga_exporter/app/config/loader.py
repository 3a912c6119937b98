"""
Loaders for the exporter's YAML configuration and service-account credentials.

Both are read once at startup; any failure is fatal.
"""

import json
from pathlib import Path
from typing import Dict, List, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, PositiveInt, ValidationError, field_validator

from shared.errors import ConfigurationError, CredentialsError
from shared.logging import get_logger

logger = get_logger("ga_exporter.config")

REQUIRED_CREDENTIAL_KEYS = ("client_email", "private_key", "private_key_id", "token_uri")


class ExporterConfig(BaseModel):
    """Exporter configuration as written in conf.yaml."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    interval: PositiveInt
    metrics: List[str] = Field(default_factory=list)
    dimensions: List[Dict[str, List[str]]] = Field(default_factory=list)
    viewid: str
    promport: int = Field(ge=1, le=65535)

    @field_validator("metrics", "dimensions", mode="before")
    @classmethod
    def empty_key_as_list(cls, value):
        # A bare `metrics:` or `dimensions:` key loads as None
        return [] if value is None else value

    @field_validator("viewid", mode="before")
    @classmethod
    def coerce_viewid(cls, value):
        # Unquoted numeric view ids arrive from YAML as integers
        return str(value) if isinstance(value, int) else value


def load_exporter_config(path: Union[str, Path]) -> ExporterConfig:
    """Read and validate the YAML configuration file."""
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file: {e}", {"path": str(path)}) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML: {e}", {"path": str(path)}) from e

    if not isinstance(data, dict):
        raise ConfigurationError("Configuration must be a mapping", {"path": str(path)})

    try:
        config = ExporterConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(
            "Configuration failed validation",
            {"path": str(path), "errors": e.errors(include_url=False)},
        ) from e

    logger.info(
        "Configuration loaded",
        path=str(path),
        metrics=len(config.metrics),
        interval=config.interval,
        viewid=config.viewid,
    )
    return config


def load_credentials(path: Union[str, Path]) -> Dict[str, str]:
    """Read a Google service-account key file.

    The file is the JSON downloaded from the cloud console; its client email
    has to be granted access to the Analytics view.
    """
    try:
        with open(path, 'r') as f:
            creds = json.load(f)
    except OSError as e:
        raise CredentialsError(f"Cannot read credentials file: {e}", {"path": str(path)}) from e
    except json.JSONDecodeError as e:
        raise CredentialsError(f"Invalid JSON: {e}", {"path": str(path)}) from e

    if not isinstance(creds, dict):
        raise CredentialsError("Credentials must be a JSON object", {"path": str(path)})

    missing = [key for key in REQUIRED_CREDENTIAL_KEYS if not creds.get(key)]
    if missing:
        raise CredentialsError("Credentials are incomplete", {"path": str(path), "missing": missing})

    logger.info("Credentials loaded", path=str(path), client_email=creds["client_email"])
    return creds
