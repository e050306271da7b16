"""Message batching module."""

from .message_batcher import MessageBatcher

__all__ = ["MessageBatcher"]
