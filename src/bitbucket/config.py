"""Configuration for the Bitbucket API client.

Two layers are provided:

- ``BitbucketClientConfig``: transport level settings (endpoints, API version,
  timeout, user agent) with defaults pointing at Bitbucket Cloud.
- ``BitbucketSettings``: credentials used to build the client state. Values can
  reference environment variables using ``${VAR_NAME}`` or
  ``${VAR_NAME:default_value}`` and can be loaded from a YAML file.

Refresh support requires ``refresh_token``, ``client_id`` and ``client_secret``
together; if any of them is missing the client never attempts a refresh and
expired-token errors reach the caller directly.
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .exceptions import BitbucketConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://api.bitbucket.org"
DEFAULT_API_VERSION = "2.0"
DEFAULT_TOKEN_URL = "https://bitbucket.org/site/oauth2/access_token"  # nosec B105

_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")


@dataclass
class BitbucketClientConfig:
    """Configuration for Bitbucket client."""

    endpoint: str = DEFAULT_ENDPOINT
    api_version: str = DEFAULT_API_VERSION
    token_url: str = DEFAULT_TOKEN_URL
    timeout: int = 30
    user_agent: str = "Bitbucket-API-Client/1.0"


class BitbucketSettings(BaseModel):
    """Credentials used to construct a Bitbucket client."""

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        extra = "forbid"

    token: str = Field(description="OAuth2 access token sent as Bearer credential")
    refresh_token: str | None = Field(
        default=None, description="Refresh token used to obtain new access tokens"
    )
    client_id: str | None = Field(default=None, description="OAuth consumer key")
    client_secret: str | None = Field(
        default=None, description="OAuth consumer secret"
    )

    @model_validator(mode="before")
    def substitute_env_vars(cls, values: Any) -> Any:
        """Substitute environment variables in string values.

        Supports formats:
        - ${VAR_NAME} - Required environment variable
        - ${VAR_NAME:default} - Optional with default value

        Raises:
            ValueError: If required environment variable is missing
        """
        if not isinstance(values, dict):
            return values

        def replacer(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default_value = match.group(2)

            env_value = os.getenv(var_name)
            if env_value is not None:
                return env_value
            elif default_value is not None:
                return default_value
            else:
                raise ValueError(
                    f"Required environment variable '{var_name}' not found"
                )

        return {
            key: _ENV_PATTERN.sub(replacer, value) if isinstance(value, str) else value
            for key, value in values.items()
        }

    @field_validator("token")
    @classmethod
    def validate_token(cls, v: str) -> str:
        """Reject blank access tokens."""
        if not v or not v.strip():
            raise ValueError("Access token must not be empty")
        return v

    @field_validator("refresh_token", "client_id", "client_secret")
    @classmethod
    def empty_to_none(cls, v: str | None) -> str | None:
        """Treat empty strings (e.g. unset ``${VAR:}``) as missing."""
        if v is not None and not v.strip():
            return None
        return v

    @property
    def refresh_enabled(self) -> bool:
        """Whether all values needed for an automatic refresh are present."""
        return bool(self.refresh_token and self.client_id and self.client_secret)


def load_settings(config_path: str | Path) -> BitbucketSettings:
    """Load Bitbucket credentials from a YAML file.

    The file may either hold the settings at the top level or under a
    ``bitbucket`` key.

    Args:
        config_path: Path to the YAML file

    Returns:
        Validated settings

    Raises:
        BitbucketConfigurationError: If the file cannot be read, parsed or validated
    """
    config_path = Path(config_path)

    if not config_path.is_file():
        raise BitbucketConfigurationError(
            f"Configuration file not found: {config_path}"
        )

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise BitbucketConfigurationError(
            f"Failed to parse YAML configuration: {e}"
        ) from e
    except OSError as e:
        raise BitbucketConfigurationError(
            f"Failed to read configuration file: {e}"
        ) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise BitbucketConfigurationError(
            f"Configuration root must be a mapping: {config_path}"
        )
    if isinstance(data.get("bitbucket"), dict):
        data = data["bitbucket"]

    try:
        settings = BitbucketSettings(**data)
    except (ValidationError, ValueError) as e:
        raise BitbucketConfigurationError(
            f"Invalid Bitbucket configuration: {e}"
        ) from e

    if not settings.refresh_enabled:
        logger.debug(f"Token refresh disabled for settings from {config_path}")

    return settings
