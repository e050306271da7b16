"""Logger configuration for the message batcher."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger


@dataclass
class LoggingSettings:
    """Logging settings, overridable with ``MESSAGE_BATCHER_LOG_*`` variables."""

    log_level: str = "INFO"
    log_to_console: bool = True
    log_to_file: bool = False
    log_file_path: Path = field(default_factory=lambda: Path.cwd() / "message_batcher.log")
    log_rotation: str = "10 MB"
    log_retention: str = "7 days"

    def __post_init__(self):
        """Apply environment variable overrides."""
        if log_level := os.getenv("MESSAGE_BATCHER_LOG_LEVEL"):
            self.log_level = log_level.upper()

        if log_to_console := os.getenv("MESSAGE_BATCHER_LOG_TO_CONSOLE"):
            self.log_to_console = log_to_console.lower() in ("1", "true", "yes")

        if log_to_file := os.getenv("MESSAGE_BATCHER_LOG_TO_FILE"):
            self.log_to_file = log_to_file.lower() in ("1", "true", "yes")

        if log_file_path := os.getenv("MESSAGE_BATCHER_LOG_FILE"):
            self.log_file_path = Path(log_file_path)


def setup_logging(settings: LoggingSettings | None = None) -> list[int]:
    """Configure loguru for console and file output.

    Removes the default loguru handler, then adds a colored console handler
    and, when enabled, a rotating file handler.

    Returns:
        Ids of the added handlers
    """
    settings = settings or LoggingSettings()

    # Remove default loguru handler
    logger.remove()
    handler_ids = []

    if settings.log_to_console:
        handler_ids.append(
            logger.add(
                sink=sys.stderr,
                format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
                level=settings.log_level,
                colorize=True,
            )
        )

    if settings.log_to_file:
        handler_ids.append(
            logger.add(
                sink=str(settings.log_file_path),
                format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}",
                level=settings.log_level,
                rotation=settings.log_rotation,
                retention=settings.log_retention,
                compression="gz",
                enqueue=True,  # Timer threads log too
            )
        )

        logger.info(f"File logging enabled: {settings.log_file_path}")

    return handler_ids
