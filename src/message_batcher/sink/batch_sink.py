"""Delivery of released batches to subscribers.

Two delivery policies are provided:

- :class:`ThreadedBatchSink` hands each batch to a single worker thread, so
  handlers run outside the batcher's sequencer and a slow handler does not
  hold up later releases. Batches are still delivered in release order.
- :class:`InlineBatchSink` calls handlers synchronously from whichever
  context released the batch.

Every handler receives every batch. A failing handler is logged and skipped;
it never affects other handlers or later batches.
"""

from __future__ import annotations

import queue
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional

from loguru import logger

BatchHandler = Callable[[List[Any]], Any]

_STOP = object()


class BatchSink(ABC):
    """Base class for batch sinks."""

    def __init__(self) -> None:
        self._handlers: list[BatchHandler] = []
        self._handlers_lock = threading.Lock()
        self._closed = False

        # Statistics
        self._total_batches_delivered = 0
        self._total_messages_delivered = 0
        self._total_handler_failures = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, handler: BatchHandler) -> BatchHandler:
        """Register a handler. Returns it so this can be used as a decorator."""
        if not callable(handler):
            raise TypeError(f"Batch handler must be callable, got {type(handler).__name__}")

        with self._handlers_lock:
            self._handlers.append(handler)
        return handler

    def unsubscribe(self, handler: BatchHandler) -> bool:
        """Remove a handler.

        Returns:
            True if the handler was registered
        """
        with self._handlers_lock:
            try:
                self._handlers.remove(handler)
            except ValueError:
                return False
        return True

    def clear_handlers(self) -> None:
        with self._handlers_lock:
            self._handlers.clear()

    def handler_count(self) -> int:
        with self._handlers_lock:
            return len(self._handlers)

    @abstractmethod
    def emit(self, batch: List[Any]) -> None:
        """Deliver a batch to every handler."""

    def close(self, timeout: Optional[float] = None) -> None:
        """Stop accepting batches."""
        self._closed = True

    def get_stats(self) -> dict:
        """Get delivery statistics."""
        return {
            "handlers": self.handler_count(),
            "closed": self._closed,
            "total_batches_delivered": self._total_batches_delivered,
            "total_messages_delivered": self._total_messages_delivered,
            "total_handler_failures": self._total_handler_failures,
        }

    def _deliver(self, batch: List[Any]) -> None:
        with self._handlers_lock:
            handlers = list(self._handlers)

        if not handlers:
            logger.warning(f"No batch handlers subscribed, dropping batch of {len(batch)} messages")

        for handler in handlers:
            try:
                handler(list(batch))
            except Exception:
                self._total_handler_failures += 1
                logger.exception(f"Batch handler {handler!r} failed on batch of {len(batch)} messages")

        self._total_batches_delivered += 1
        self._total_messages_delivered += len(batch)


class InlineBatchSink(BatchSink):
    """Calls handlers synchronously in the releasing context."""

    def emit(self, batch: List[Any]) -> None:
        if self._closed:
            logger.warning(f"Sink is closed, dropping batch of {len(batch)} messages")
            return

        self._deliver(batch)


class ThreadedBatchSink(BatchSink):
    """Calls handlers from a dedicated worker thread, in release order."""

    def __init__(self, name: str = "message-batcher-sink") -> None:
        super().__init__()
        self._queue: queue.Queue = queue.Queue()
        self._idle = threading.Condition()
        self._outstanding = 0
        self._worker = threading.Thread(target=self._deliver_loop, name=name, daemon=True)
        self._worker.start()

    def emit(self, batch: List[Any]) -> None:
        # Checked under the same lock close() uses to queue the stop marker
        with self._idle:
            if not self._closed:
                self._outstanding += 1
                self._queue.put(batch)
                return

        logger.warning(f"Sink is closed, dropping batch of {len(batch)} messages")

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until every emitted batch has been delivered.

        Returns:
            False if the timeout expired first
        """
        with self._idle:
            return self._idle.wait_for(lambda: self._outstanding == 0, timeout)

    def close(self, timeout: Optional[float] = 5.0) -> None:
        """Deliver batches already emitted, then stop the worker thread."""
        with self._idle:
            if self._closed:
                return

            self._closed = True
            self._queue.put(_STOP)

        if threading.current_thread() is not self._worker:
            self._worker.join(timeout=timeout)
            if self._worker.is_alive():
                logger.warning("Batch sink worker did not stop in time")

    def _deliver_loop(self) -> None:
        logger.debug("Started batch sink worker")

        while True:
            batch = self._queue.get()
            if batch is _STOP:
                break

            try:
                self._deliver(batch)
            finally:
                with self._idle:
                    self._outstanding -= 1
                    self._idle.notify_all()

        logger.debug("Batch sink worker finished")
