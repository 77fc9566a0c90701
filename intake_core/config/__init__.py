"""
Configuration module for the record intake core.

Provides centralized configuration management using Pydantic Settings,
environment variable loading, and structured logging setup.
"""

from intake_core.config.logging_config import configure_logging, get_logger
from intake_core.config.settings import (
    DuplicateDetectionSettings,
    Environment,
    Settings,
    get_settings,
)


__all__ = [
    "Settings",
    "DuplicateDetectionSettings",
    "get_settings",
    "Environment",
    "configure_logging",
    "get_logger",
]
