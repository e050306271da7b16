"""Coalescing delayed invocation with a maximum wait.

A :class:`CoalescingTimer` calls its callback ``wait`` seconds after it was
last armed, but never later than ``max_wait`` seconds after the first arm
of the current cycle. Re-arming before the timer fires replaces the pending
arguments instead of scheduling a second call.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from loguru import logger


class CoalescingTimer:
    """Debounced callback with a hard upper bound on delay."""

    def __init__(
        self,
        callback: Callable[..., Any],
        wait: float,
        max_wait: Optional[float] = None,
        lock: Optional[threading.RLock] = None,
        name: str = "timer",
    ):
        """Initialize the timer.

        Args:
            callback: Function to invoke when the timer fires
            wait: Delay in seconds after the latest arm
            max_wait: Upper bound in seconds after the first arm, never below ``wait``
            lock: Lock held while state changes and while the callback runs
            name: Name used in log messages
        """
        self.name = name
        self._callback = callback
        self._wait = max(float(wait), 0.0)
        self._max_wait = self._wait if max_wait is None else max(float(max_wait), self._wait)
        self._lock = lock if lock is not None else threading.RLock()

        self._timer: Optional[threading.Timer] = None
        self._generation = 0
        self._pending = False
        self._first_armed_at: Optional[float] = None
        self._deadline: Optional[float] = None
        self._args: Tuple[Any, ...] = ()
        self._kwargs: Dict[str, Any] = {}

    @property
    def pending(self) -> bool:
        """Whether a call is scheduled."""
        with self._lock:
            return self._pending

    @property
    def wait(self) -> float:
        return self._wait

    @property
    def max_wait(self) -> float:
        return self._max_wait

    def arm(self, *args: Any, **kwargs: Any) -> None:
        """Schedule the callback, coalescing with any pending call."""
        with self._lock:
            now = time.monotonic()
            if not self._pending:
                self._pending = True
                self._first_armed_at = now

            self._args = args
            self._kwargs = kwargs

            deadline = min(now + self._wait, self._first_armed_at + self._max_wait)
            if deadline == self._deadline and self._timer is not None:
                return

            self._schedule(deadline, now)

    def cancel(self) -> None:
        """Drop the pending call, if any."""
        with self._lock:
            if self._pending:
                logger.debug(f"Cancelled pending {self.name} call")
            self._reset()

    def flush(self) -> bool:
        """Invoke a pending call immediately.

        Returns:
            True if the callback ran, False if nothing was pending
        """
        with self._lock:
            if not self._pending:
                return False

            self._invoke()
            return True

    def _schedule(self, deadline: float, now: float) -> None:
        if self._timer is not None:
            self._timer.cancel()

        self._generation += 1
        self._deadline = deadline
        self._timer = threading.Timer(max(deadline - now, 0.0), self._fire, args=(self._generation,))
        self._timer.daemon = True
        self._timer.name = f"message-batcher-{self.name}"
        self._timer.start()

    def _fire(self, generation: int) -> None:
        with self._lock:
            # Superseded by a later arm, cancel or flush
            if generation != self._generation or not self._pending:
                return

            try:
                self._invoke()
            except Exception:
                logger.exception(f"Error in {self.name} callback")

    def _invoke(self) -> None:
        args, kwargs = self._args, self._kwargs
        self._reset()
        self._callback(*args, **kwargs)

    def _reset(self) -> None:
        if self._timer is not None:
            self._timer.cancel()

        self._timer = None
        self._generation += 1
        self._pending = False
        self._first_armed_at = None
        self._deadline = None
        self._args = ()
        self._kwargs = {}
