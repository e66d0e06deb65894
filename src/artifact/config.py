"""Configuration loading for artifact backends.

Values are resolved with the following precedence:
1. Environment variables (highest)
2. YAML config file (ARTIFACT_CONFIG, default ~/.artifact.yaml)
3. Defaults (lowest)

Example config file:

    backend: s3
    s3:
      bucket: my-artifacts
      region: eu-west-1
      endpoint: http://localhost:9000
      force_path_style: true    # or forcePathStyle
      prefix: ci
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from artifact.exceptions import ConfigurationError, MissingConfigError

CONFIG_ENV_VAR = "ARTIFACT_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".artifact.yaml"

# camelCase spellings written by earlier releases of the tool
S3_FILE_KEY_ALIASES = {"forcePathStyle": "force_path_style"}


def config_file_path() -> Path:
    """Return the path of the persisted config file."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return DEFAULT_CONFIG_PATH


def load_config_file(path: Path | None = None) -> dict[str, Any]:
    """Load the YAML config file.

    Returns an empty dict when the file does not exist.
    """
    if path is None:
        path = config_file_path()

    if not path.exists():
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Invalid config in {path}: expected a mapping")
    return data


def _section(file_data: dict[str, Any], name: str) -> dict[str, Any]:
    section = file_data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"Invalid '{name}' section in config file: expected a mapping")
    return section


class _EnvFirstSettings(BaseSettings):
    """Settings where environment variables override init values.

    Init values carry the config file section, so this ordering gives
    env > file > defaults.
    """

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return env_settings, init_settings


class HubConfig(_EnvFirstSettings):
    """Configuration for the signed-URL broker backend."""

    artifact_token: str = Field(default="", description="Token sent to the broker")
    organization_url: str = Field(
        default="", description="Base URL of the organization hosting the broker"
    )
    timeout: float = Field(default=300.0, description="HTTP timeout in seconds")

    model_config = SettingsConfigDict(
        env_prefix="SEMAPHORE_",
        case_sensitive=False,
        frozen=True,
    )


class S3Config(_EnvFirstSettings):
    """Configuration for the direct S3 backend."""

    bucket: str = Field(default="", description="Bucket name (required)")
    region: str | None = Field(default=None, description="Region, auto-detected if unset")
    endpoint: str | None = Field(
        default=None, description="Custom endpoint for S3-compatible services like MinIO"
    )
    force_path_style: bool = Field(
        default=False, description="Use path-style URLs instead of virtual-hosted-style"
    )
    prefix: str = Field(default="", description="Key prefix for all artifacts")

    model_config = SettingsConfigDict(
        env_prefix="ARTIFACT_S3_",
        case_sensitive=False,
        frozen=True,
    )


def load_hub_config(file_data: dict[str, Any] | None = None) -> HubConfig:
    """Resolve hub configuration and validate required fields."""
    if file_data is None:
        file_data = load_config_file()

    section = _section(file_data, "hub")
    try:
        cfg = HubConfig(**section)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid hub config: {e}") from e

    if not cfg.artifact_token:
        raise MissingConfigError(
            "Artifact token", "set SEMAPHORE_ARTIFACT_TOKEN"
        )
    if not cfg.organization_url:
        raise MissingConfigError(
            "Organization URL", "set SEMAPHORE_ORGANIZATION_URL"
        )
    return cfg


def load_s3_config(file_data: dict[str, Any] | None = None) -> S3Config:
    """Resolve S3 configuration and validate required fields."""
    if file_data is None:
        file_data = load_config_file()

    section = {
        S3_FILE_KEY_ALIASES.get(key, key): value
        for key, value in _section(file_data, "s3").items()
    }
    try:
        cfg = S3Config(**section)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid s3 config: {e}") from e

    if not cfg.bucket:
        raise MissingConfigError(
            "S3 bucket", "set ARTIFACT_S3_BUCKET or s3.bucket in config"
        )
    return cfg
