"""In-memory FIFO queue of pending messages.

The queue is unbounded and does no locking of its own: the batcher owns it
and only touches it while holding its sequencer lock.
"""

from __future__ import annotations

from collections import deque
from typing import Any, Iterable

from loguru import logger


class MessageQueue:
    """Unbounded FIFO buffer of opaque messages."""

    def __init__(self) -> None:
        self._queue: deque[Any] = deque()

        # Statistics
        self._total_enqueued = 0
        self._total_dequeued = 0

    def __len__(self) -> int:
        return len(self._queue)

    def append(self, items: Iterable[Any]) -> int:
        """Append messages, preserving their order.

        Args:
            items: Messages to append

        Returns:
            Number of messages appended
        """
        before = len(self._queue)
        self._queue.extend(items)
        added = len(self._queue) - before
        self._total_enqueued += added

        if added:
            logger.debug(f"Enqueued {added} messages, queue size: {len(self._queue)}")
        return added

    def drain_up_to(self, max_size: int) -> list[Any]:
        """Remove and return the oldest messages.

        Args:
            max_size: Maximum number of messages to return

        Returns:
            Up to ``max_size`` messages in arrival order (may be empty)
        """
        count = min(max_size, len(self._queue))
        messages = [self._queue.popleft() for _ in range(count)]
        self._total_dequeued += count

        if messages:
            logger.debug(f"Drained {count} messages, queue size: {len(self._queue)}")
        return messages

    def size(self) -> int:
        """Return the current queue size."""
        return len(self._queue)

    def is_empty(self) -> bool:
        """Check if the queue is empty."""
        return not self._queue

    def clear(self) -> list[Any]:
        """Clear all messages from the queue and return them."""
        messages = list(self._queue)
        self._queue.clear()
        self._total_dequeued += len(messages)
        return messages

    def get_stats(self) -> dict:
        """Get queue statistics."""
        return {
            "current_size": len(self._queue),
            "total_enqueued": self._total_enqueued,
            "total_dequeued": self._total_dequeued,
        }
