"""Debounced notification batcher.

A minimal single-timer coalescing queue.  Each ``enqueue`` appends a
change event and (re)starts one delay timer; when the timer fires, the
queued events are merged into a single ``SelectionChangeEvent`` and
delivered once.  Issuing another event before the timer fires cancels
and restarts it (classic debounce).

State transitions are never deferred here: the engine commits each call
immediately and only the notification waits for the window to close.

Threading:
    The default timer is a daemon ``threading.Timer``, so the merged
    event is delivered on the timer thread.  A generation counter makes
    sure a timer that was cancelled too late to stop its thread never
    delivers a stale batch.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Protocol

from zone_selection.models.selection import SelectionChangeEvent

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger("zone_selection.engine.batching")


class TimerHandle(Protocol):
    """The subset of ``threading.Timer`` the batcher relies on."""

    def start(self) -> None: ...

    def cancel(self) -> None: ...


def threading_timer(delay_s: float, callback: Callable[[], None]) -> TimerHandle:
    """Default timer factory: a daemon ``threading.Timer``."""
    timer = threading.Timer(delay_s, callback)
    timer.daemon = True
    return timer


class NotificationBatcher:
    """Coalesce change events inside a debounce window.

    Args:
        delay_ms: Debounce window in milliseconds (must be > 0).
        deliver: Receives the merged event when the window closes.
        timer_factory: ``(delay_seconds, callback) -> TimerHandle``;
            defaults to ``threading_timer``.

    Raises:
        ValueError: If *delay_ms* is not positive.
    """

    def __init__(
        self,
        delay_ms: int,
        deliver: Callable[[SelectionChangeEvent], None],
        timer_factory: Callable[[float, Callable[[], None]], TimerHandle] | None = None,
    ) -> None:
        if delay_ms <= 0:
            msg = f"Batch delay must be > 0 ms, got {delay_ms}"
            raise ValueError(msg)
        self._delay_s = delay_ms / 1000.0
        self._deliver = deliver
        self._timer_factory = timer_factory or threading_timer
        self._pending: list[SelectionChangeEvent] = []
        self._timer: TimerHandle | None = None
        self._generation = 0
        self._closed = False
        self._lock = threading.Lock()

    @property
    def pending_count(self) -> int:
        """Number of events waiting for the window to close."""
        with self._lock:
            return len(self._pending)

    @property
    def closed(self) -> bool:
        return self._closed

    def enqueue(self, event: SelectionChangeEvent) -> None:
        """Queue *event* and restart the debounce timer."""
        with self._lock:
            if self._closed:
                logger.debug("Event dropped, batcher closed | source=%s", event.source.value)
                return
            self._pending.append(event)
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            generation = self._generation
            self._timer = self._timer_factory(self._delay_s, lambda: self._on_timer(generation))
            self._timer.start()

    def flush(self) -> SelectionChangeEvent | None:
        """Deliver any pending events now and return the merged event."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._generation += 1
            events = self._take_pending()
        return self._deliver_batch(events)

    def close(self) -> None:
        """Cancel the timer and drop pending events.  Idempotent."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._generation += 1
            dropped = len(self._pending)
            self._pending = []
            self._closed = True
        if dropped:
            logger.debug("Batcher closed | dropped_events=%d", dropped)

    def _on_timer(self, generation: int) -> None:
        with self._lock:
            if self._closed or generation != self._generation:
                return
            self._timer = None
            events = self._take_pending()
        self._deliver_batch(events)

    def _take_pending(self) -> list[SelectionChangeEvent]:
        events = self._pending
        self._pending = []
        return events

    def _deliver_batch(self, events: list[SelectionChangeEvent]) -> SelectionChangeEvent | None:
        if not events:
            return None
        merged = SelectionChangeEvent.merge(events)
        logger.debug(
            "Batch delivered | events=%d | added=%d | removed=%d | current=%d",
            len(events),
            len(merged.added),
            len(merged.removed),
            len(merged.current),
        )
        self._deliver(merged)
        return merged
