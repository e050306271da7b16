"""Message queuing module for the message batcher."""

from .message_queue import MessageQueue

__all__ = ["MessageQueue"]
