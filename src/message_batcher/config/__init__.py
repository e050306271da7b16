"""Configuration module for the message batcher."""

from .logger_config import LoggingSettings, setup_logging
from .settings import DEFAULT_ENV_PREFIX, BatcherOptions
from .validation import REQUIRED_OPTIONS, validate_options

__all__ = ["BatcherOptions", "DEFAULT_ENV_PREFIX", "LoggingSettings", "REQUIRED_OPTIONS", "setup_logging", "validate_options"]
