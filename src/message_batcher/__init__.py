"""Message Batcher - release queued messages in size- and time-bounded batches."""

from .batcher import MessageBatcher
from .config import BatcherOptions, LoggingSettings, setup_logging
from .errors import ConfigError, MessageBatcherError
from .sink import BatchSink, InlineBatchSink, ThreadedBatchSink

__version__ = "1.0.0"

__all__ = [
    "BatcherOptions",
    "BatchSink",
    "ConfigError",
    "InlineBatchSink",
    "LoggingSettings",
    "MessageBatcher",
    "MessageBatcherError",
    "ThreadedBatchSink",
    "setup_logging",
]
