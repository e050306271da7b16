"""Delayed invocation primitives for the message batcher."""

from .coalescing_timer import CoalescingTimer

__all__ = ["CoalescingTimer"]
