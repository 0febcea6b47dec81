#!/usr/bin/env python3
"""
TVDB Provider Configuration Models and Validation

Pydantic configuration models and the loader that builds them from a JSON or
YAML file plus environment variable overrides.

**Configuration Sources (later wins):**
    1. Model defaults
    2. Configuration file (`/app/config/config.json` by default, missing file is fine)
    3. Environment variables (TVDB_API_KEY, HOST, PORT, ...)

Classes:
    Configuration Models:
        TVDBConfig: TheTVDB API credentials and client settings
        ProviderConfig: Defaults applied to client requests
        ServerConfig: FastAPI/uvicorn server and logging settings
        AppConfig: Top-level application configuration

    Validation:
        ConfigurationValidator: Configuration loading and validation

Project: TVDB Provider
Version: 1.0.0
License: MIT
"""

import os
import json
from typing import Dict, Any, Optional, List

import yaml
from pydantic import BaseModel, Field, ConfigDict, ValidationError, field_validator

from .metadata_tvdb import TVDB
from .utils import get_logger

DEFAULT_CONFIG_PATH = "/app/config/config.json"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# ==================== TVDB CONFIGURATION ====================

class TVDBConfig(BaseModel):
    """
    TheTVDB API v4 access settings.

    TheTVDB issues project API keys; subscriber keys additionally take the
    subscriber's PIN at login.

    Attributes:
        api_key (Optional[str]): TVDB API key (required at startup)
        subscriber_pin (Optional[str]): Subscriber PIN for user-supported keys
        base_url (str): TVDB API base URL
        timeout_seconds (int): Per-request timeout
        max_retries (int): Retries for network errors and 5xx responses

    Example:
        ```python
        tvdb = TVDBConfig(api_key="your-tvdb-key", subscriber_pin="1234")
        ```
    """
    model_config = ConfigDict(extra='forbid')

    api_key: Optional[str] = Field(default=None, description="TVDB API key")
    subscriber_pin: Optional[str] = Field(default=None, description="TVDB subscriber PIN")
    base_url: str = Field(default=TVDB.BASE_URL, description="TVDB API base URL")
    timeout_seconds: int = Field(default=TVDB.DEFAULT_TIMEOUT, ge=1, le=300)
    max_retries: int = Field(default=TVDB.MAX_RETRIES, ge=0, le=10)

    # noinspection PyDecorator
    @field_validator('api_key', 'subscriber_pin')
    @classmethod
    def validate_optional_strings(cls, v: Optional[str]) -> Optional[str]:
        """Blank credentials count as unset."""
        if v is None:
            return None
        return v.strip() or None

    # noinspection PyDecorator
    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(('http://', 'https://')):
            raise ValueError("TVDB base URL must start with http:// or https://")
        return v


# ==================== PROVIDER CONFIGURATION ====================

class ProviderConfig(BaseModel):
    """
    Defaults for requests that omit the client's context headers.

    Attributes:
        default_country (str): Country for content ratings when X-Plex-Country is absent
        default_language (str): Language when X-Plex-Language is absent
        default_container_size (int): Page size when X-Plex-Container-Size is absent
    """
    model_config = ConfigDict(extra='forbid')

    default_country: str = Field(default="US", min_length=2, max_length=3)
    default_language: str = Field(default="en-US")
    default_container_size: int = Field(default=20, ge=1, le=1000)

    # noinspection PyDecorator
    @field_validator('default_country')
    @classmethod
    def validate_country(cls, v: str) -> str:
        return v.upper()


# ==================== SERVER CONFIGURATION ====================

class ServerConfig(BaseModel):
    """
    Where uvicorn listens and where the provider writes its logs.

    Attributes:
        host (str): Bind address
        port (int): Listen port
        log_level (str): One of LOG_LEVELS
        log_dir (str): Directory receiving tvdb_provider.log
    """
    model_config = ConfigDict(extra='forbid')

    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)
    log_level: str = "INFO"
    log_dir: str = "/app/logs"

    # noinspection PyDecorator
    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Accept any case of a standard level name and store it uppercased."""
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got '{v}'")
        return level


class AppConfig(BaseModel):
    """
    Top-level application configuration.

    Attributes:
        tvdb (TVDBConfig): TheTVDB access settings
        provider (ProviderConfig): Request defaults
        server (ServerConfig): Web server configuration
    """
    model_config = ConfigDict(extra='ignore')

    tvdb: TVDBConfig = Field(default_factory=TVDBConfig)
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)


# ==================== CONFIGURATION VALIDATION ====================

class ConfigurationValidator:
    """
    Configuration loader with environment variable support.

    Errors are collected rather than raised one at a time so a misconfigured
    deployment reports every problem in one go.

    Attributes:
        logger (logging.Logger): Logger for reporting validation progress
        errors (List[str]): Validation errors that prevent startup
        warnings (List[str]): Validation warnings that don't prevent startup

    Example:
        ```python
        validator = ConfigurationValidator()
        config = validator.load_and_validate_config("/app/config/config.yaml")
        ```
    """

    ENV_MAPPINGS = {
        'TVDB_API_KEY': ('tvdb', 'api_key'),
        'TVDB_SUBSCRIBER_PIN': ('tvdb', 'subscriber_pin'),
        'TVDB_BASE_URL': ('tvdb', 'base_url'),
        'HOST': ('server', 'host'),
        'PORT': ('server', 'port'),
        'LOG_LEVEL': ('server', 'log_level'),
        'LOG_DIR': ('server', 'log_dir'),
        'DEFAULT_COUNTRY': ('provider', 'default_country'),
    }

    def __init__(self):
        self.logger = get_logger("tvdb_provider.config")
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def load_and_validate_config(self, config_path: str = DEFAULT_CONFIG_PATH) -> AppConfig:
        """
        Build the AppConfig for `config_path` with environment overrides applied.

        Raises:
            SystemExit: On an unreadable file, a model validation error or a
                missing TheTVDB API key
        """
        try:
            self.logger.info(f"Reading provider configuration: {config_path}")

            raw = self._load_config_file(config_path)
            self._apply_env_overrides(raw)
            config = AppConfig(**raw)

            self._validate_tvdb_config(config.tvdb)
            self._report_validation_results()

            self.logger.info(
                f"Configuration ready (server {config.server.host}:{config.server.port}, "
                f"country {config.provider.default_country})"
            )
            return config

        except ValidationError as e:
            self.logger.error(f"Configuration has {e.error_count()} invalid value(s):")
            for error in e.errors():
                location = ".".join(str(part) for part in error['loc'])
                self.logger.error(f"  {location}: {error['msg']}")
            raise SystemExit(1)
        except (OSError, ValueError, yaml.YAMLError) as e:
            self.logger.error(f"Cannot load configuration from {config_path}: {e}")
            raise SystemExit(1)

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """
        Parse the configuration file into a dict.

        `.yaml`/`.yml` files go through PyYAML, anything else is JSON. A missing
        file yields an empty dict so environment variables alone can configure
        the provider.
        """
        is_yaml = config_path.endswith(('.yaml', '.yml'))
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = (yaml.safe_load(f) if is_yaml else json.load(f)) or {}
        except FileNotFoundError:
            self.logger.warning(f"No configuration file at {config_path}, relying on environment and defaults")
            return {}
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            self.errors.append(f"{config_path} is not valid {'YAML' if is_yaml else 'JSON'}: {e}")
            raise

        if not isinstance(data, dict):
            raise ValueError(f"Configuration file must contain a mapping, got {type(data).__name__}")
        return data

    def _apply_env_overrides(self, config_data: Dict[str, Any]) -> None:
        """Copy every non-empty variable in ENV_MAPPINGS into `config_data` in place."""
        for env_var, (section, field_name) in self.ENV_MAPPINGS.items():
            value = os.environ.get(env_var)
            if not value:
                continue

            if env_var == 'PORT':
                try:
                    value = int(value)
                except ValueError:
                    self.logger.warning(f"Ignoring non-numeric PORT '{value}'")
                    continue

            if not isinstance(config_data.get(section), dict):
                config_data[section] = {}
            config_data[section][field_name] = value
            self.logger.debug(f"{env_var} overrides {section}.{field_name}")

    def _validate_tvdb_config(self, tvdb_config: TVDBConfig) -> None:
        if not tvdb_config.api_key:
            self.errors.append("TVDB_API_KEY is not set in environment variables or configuration file")
            return
        if tvdb_config.base_url.rstrip('/') != TVDB.BASE_URL.rstrip('/'):
            self.warnings.append(f"Using a non-default TheTVDB endpoint: {tvdb_config.base_url}")
        if not tvdb_config.subscriber_pin:
            self.logger.info("No TVDB subscriber PIN configured, using standard API access")

    def _report_validation_results(self) -> None:
        """
        Log collected warnings and errors.

        Raises:
            SystemExit: If any error was collected
        """
        for warning in self.warnings:
            self.logger.warning(f"Configuration warning: {warning}")

        if self.errors:
            for error in self.errors:
                self.logger.error(f"Configuration error: {error}")
            raise SystemExit(1)
