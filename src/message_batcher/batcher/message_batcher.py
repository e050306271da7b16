"""Message batcher for releasing queued messages in bounded batches.

Messages are queued as they arrive and released to subscribers in batches of
at most ``max_batch_size``:

- The first full batch is released immediately.
- Later full batches are spaced at least ``min_delay_ms`` apart.
- A partial batch is held for at most ``max_delay_ms`` while more messages
  accumulate.

All state changes (enqueue, timer firings, close) run under one re-entrant
lock, which acts as the batcher's single sequencer.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Mapping, Optional, Union

from loguru import logger

from ..config import BatcherOptions
from ..queuer import MessageQueue
from ..sink import BatchHandler, BatchSink, ThreadedBatchSink
from ..timer import CoalescingTimer


def _resolve_options(options: Union[BatcherOptions, Mapping[str, Any], None], overrides: Dict[str, Any]) -> BatcherOptions:
    if isinstance(options, BatcherOptions):
        if not overrides:
            return options
        return BatcherOptions.model_validate({**options.model_dump(), **overrides})

    data: Dict[str, Any] = dict(options) if options is not None else {}
    data.update(overrides)
    return BatcherOptions.model_validate(data)


class MessageBatcher:
    """Accumulates messages and releases them to subscribers in batches."""

    def __init__(
        self,
        options: Union[BatcherOptions, Mapping[str, Any], None] = None,
        *,
        sink: Optional[BatchSink] = None,
        **option_kwargs: Any,
    ):
        """Initialize the batcher.

        Args:
            options: Batcher options, as a model or a mapping
            sink: Sink that delivers batches; defaults to a ThreadedBatchSink.
                The batcher closes it on close().
            **option_kwargs: Options given as keywords, overriding ``options``

        Raises:
            ConfigError: If the options are missing or invalid
        """
        self.options = _resolve_options(options, option_kwargs)

        self._lock = threading.RLock()
        self._queue = MessageQueue()
        self._sink = sink if sink is not None else ThreadedBatchSink()
        self._first_batch = True
        self._closed = False

        self._max_timer = CoalescingTimer(
            self._release_batch,
            wait=self.options.max_delay,
            max_wait=self.options.max_delay,
            lock=self._lock,
            name="max-delay",
        )
        self._min_timer = CoalescingTimer(
            self._release_batch,
            wait=self.options.min_delay,
            max_wait=self.options.min_delay,
            lock=self._lock,
            name="min-delay",
        )

        # Statistics
        self._total_batches_released = 0
        self._total_messages_released = 0

        logger.debug(
            f"Created message batcher (max_batch_size={self.options.max_batch_size}, "
            f"max_delay_ms={self.options.max_delay_ms}, min_delay_ms={self.options.min_delay_ms})"
        )

    def __enter__(self) -> "MessageBatcher":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def sink(self) -> BatchSink:
        return self._sink

    @property
    def pending(self) -> int:
        """Number of queued messages not yet released."""
        with self._lock:
            return len(self._queue)

    @property
    def closed(self) -> bool:
        return self._closed

    def enqueue(self, messages: Any) -> None:
        """Queue one message or a list/tuple of messages.

        Any other value, including dicts and strings, is queued as a single
        message. An empty list or tuple is a no-op.
        """
        items = messages if isinstance(messages, (list, tuple)) else (messages,)
        if not items:
            return

        with self._lock:
            if self._closed:
                logger.warning(f"Batcher is closed, dropping {len(items)} messages")
                return

            self._queue.append(items)
            self._evaluate()

    def on_batch(self, handler: BatchHandler) -> BatchHandler:
        """Subscribe to released batches. Usable as a decorator."""
        return self._sink.subscribe(handler)

    def off_batch(self, handler: BatchHandler) -> bool:
        """Unsubscribe a handler. Returns False if it was not subscribed."""
        return self._sink.unsubscribe(handler)

    def remove_all_handlers(self) -> None:
        self._sink.clear_handlers()

    def close(self) -> None:
        """Stop the timers and the sink. Queued messages are discarded."""
        with self._lock:
            if self._closed:
                return

            self._closed = True
            self._max_timer.cancel()
            self._min_timer.cancel()
            discarded = self._queue.clear()

        if discarded:
            logger.warning(f"Discarded {len(discarded)} queued messages on close")

        # Outside the lock: a handler still running may be enqueueing
        self._sink.close()

        logger.info(f"Closed message batcher. Stats - Batches released: {self._total_batches_released}, Messages released: {self._total_messages_released}")

    def get_stats(self) -> Dict[str, Any]:
        """Get batcher statistics."""
        with self._lock:
            return {
                "closed": self._closed,
                "first_batch_pending": self._first_batch,
                "max_timer_pending": self._max_timer.pending,
                "min_timer_pending": self._min_timer.pending,
                "total_batches_released": self._total_batches_released,
                "total_messages_released": self._total_messages_released,
                "queue": self._queue.get_stats(),
                "sink": self._sink.get_stats(),
                "config": self.options.model_dump(),
            }

    def _evaluate(self) -> None:
        """Arm, cancel or flush the timers for the current queue length."""
        queued = len(self._queue)
        batch_size = self.options.max_batch_size

        if queued == 0:
            self._max_timer.cancel()
            self._min_timer.cancel()
        elif queued >= batch_size:
            if self._first_batch:
                # First full batch goes out without waiting
                self._first_batch = False
                self._max_timer.arm(self._queue, batch_size)
                self._max_timer.flush()
            else:
                self._max_timer.cancel()
                self._min_timer.arm(self._queue, batch_size)
        else:
            self._min_timer.cancel()
            self._max_timer.arm(self._queue, batch_size)

    def _release_batch(self, queue: MessageQueue, batch_size: int) -> None:
        """Drain one batch, hand it to the sink and re-evaluate the remainder."""
        batch = queue.drain_up_to(batch_size)
        if not batch:
            return

        self._total_batches_released += 1
        self._total_messages_released += len(batch)
        logger.debug(f"Releasing batch of {len(batch)} messages, {len(queue)} still queued")

        try:
            self._sink.emit(batch)
        except Exception:
            # The batch is already drained; keep the remainder moving
            logger.exception(f"Sink failed to accept batch of {len(batch)} messages")

        self._evaluate()
