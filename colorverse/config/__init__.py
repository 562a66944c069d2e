"""Configuration management.

Handles YAML configuration loading, environment overrides, logging setup
and construction of a configured manager.
"""

from colorverse.config.exceptions import ConfigurationError
from colorverse.config.loader import (
    ColorVerseConfig,
    HTTPConfig,
    LoggingConfig,
    ProvidersConfig,
    build_manager,
    load_config,
    setup_logging,
)

__all__ = [
    "ColorVerseConfig",
    "ConfigurationError",
    "HTTPConfig",
    "LoggingConfig",
    "ProvidersConfig",
    "build_manager",
    "load_config",
    "setup_logging",
]
