"""Batch delivery module for the message batcher."""

from .batch_sink import BatchHandler, BatchSink, InlineBatchSink, ThreadedBatchSink

__all__ = ["BatchHandler", "BatchSink", "InlineBatchSink", "ThreadedBatchSink"]
