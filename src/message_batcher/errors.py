"""Exceptions raised by the message batcher."""

from __future__ import annotations

from typing import Optional


class MessageBatcherError(Exception):
    """Base class for message batcher errors."""


class ConfigError(MessageBatcherError):
    """Raised when batcher options are missing or out of range.

    Not a ``ValueError`` subclass, so pydantic validators let it propagate
    unchanged.
    """

    def __init__(self, message: str, option: Optional[str] = None):
        super().__init__(message)
        self.option = option
