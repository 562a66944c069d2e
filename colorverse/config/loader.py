"""Configuration loader for ColorVerse."""

import logging
import logging.handlers
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError

from ..llm.manager import MultiProviderAIManager
from ..llm.providers.registry import (
    DEFAULT_REFERRER,
    PROVIDER_PRIORITY,
    build_default_registry,
)
from ..llm.retry import RetryConfig
from ..llm.transport import DEFAULT_TIMEOUT_SECONDS, HTTPTransport
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Environment variable -> provider id
API_KEY_ENV_VARS = {
    "POLLINATIONS_API_KEY": "pollinations",
    "OPENROUTER_API_KEY": "openrouter",
    "GOOGLE_GEMINI_API_KEY": "gemini",
}


class ProvidersConfig(BaseModel):
    """Provider selection and credentials."""
    priority: List[str] = Field(default_factory=lambda: list(PROVIDER_PRIORITY))
    api_keys: Dict[str, Optional[str]] = Field(default_factory=dict)
    referrer: str = DEFAULT_REFERRER


class HTTPConfig(BaseModel):
    """Outbound HTTP settings."""
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None
    max_file_size_mb: int = 10
    backup_count: int = 3
    enable_console_logging: bool = True


class ColorVerseConfig(BaseModel):
    """Main ColorVerse configuration."""

    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    http: HTTPConfig = Field(default_factory=HTTPConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: Optional[Union[str, Path]] = None) -> ColorVerseConfig:
    """Load ColorVerse configuration from file and environment variables.

    Args:
        config_path: Path to a YAML configuration file. Defaults to
            colorverse.yaml in the current directory.

    Returns:
        ColorVerseConfig instance with loaded configuration

    Raises:
        ConfigurationError: If the file cannot be parsed or values are invalid
    """
    config_path = Path(config_path).expanduser() if config_path else Path("colorverse.yaml")

    config_data: Dict[str, Any] = {}
    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_data = yaml.safe_load(f) or {}
            logger.info(f"Loaded configuration from {config_path}")
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to read config file {config_path}: {e}") from e
        if not isinstance(config_data, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping")
    else:
        logger.info(f"Config file {config_path} not found, using defaults")

    config_data = _apply_environment_overrides(config_data)

    try:
        config = ColorVerseConfig.model_validate(config_data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    unknown = [p for p in config.providers.priority if p not in PROVIDER_PRIORITY]
    if unknown:
        raise ConfigurationError(f"Unknown provider(s) in priority: {', '.join(unknown)}")

    logger.debug("Configuration validated successfully")
    return config


def _apply_environment_overrides(config_data: Dict[str, Any]) -> Dict[str, Any]:
    """Apply environment variable overrides to configuration.

    Args:
        config_data: Base configuration data from file

    Returns:
        Configuration data with environment overrides applied
    """
    for env_var, provider_id in API_KEY_ENV_VARS.items():
        value = os.getenv(env_var)
        if value:
            providers = config_data.setdefault("providers", {})
            providers.setdefault("api_keys", {})[provider_id] = value

    if os.getenv("REFERRER_ID"):
        config_data.setdefault("providers", {})["referrer"] = os.getenv("REFERRER_ID")

    if os.getenv("LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = os.getenv("LOG_LEVEL")

    return config_data


def setup_logging(config: ColorVerseConfig) -> None:
    """Set up logging based on configuration.

    Args:
        config: ColorVerse configuration instance
    """
    formatter = logging.Formatter(config.logging.format)
    handlers: List[logging.Handler] = []

    if config.logging.file_path:
        log_file = Path(config.logging.file_path)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=config.logging.max_file_size_mb * 1024 * 1024,
            backupCount=config.logging.backup_count,
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if config.logging.enable_console_logging:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.logging.level.upper(), logging.INFO))
    root_logger.handlers = handlers

    logger.debug("Logging configured successfully")


def build_manager(config: ColorVerseConfig) -> MultiProviderAIManager:
    """Create a manager wired to the given configuration."""
    return MultiProviderAIManager(
        providers=build_default_registry(referrer=config.providers.referrer),
        provider_priority=config.providers.priority,
        retry_config=config.retry,
        transport=HTTPTransport(timeout_seconds=config.http.timeout_seconds),
        api_keys=config.providers.api_keys,
    )
