"""SelectionStore abstract base class.

Defines the scoped get/set/subscribe contract the engine uses to persist
and reload the ordered list of selected zone ids across sessions.  The
engine never knows which concrete backend sits behind it.

Lifecycle:
    1. ``get(key)``        - read once at engine start-up.
    2. ``set(key, ids)``   - written on every committed order change.
    3. ``subscribe(key, callback)`` - observe writes made through this store.

A missing key is a valid "no prior selection" state and returns ``[]``.
"""

from __future__ import annotations

import abc
import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

logger = logging.getLogger("zone_selection.storage.base")


class SelectionStore(abc.ABC):
    """Abstract base class for selection stores.

    Concrete implementations override ``_read`` and ``_write``; the base
    class owns subscription bookkeeping and notifies subscribers after
    every successful ``set``.

    Example usage::

        store = get_store("file", directory="/tmp/selections")
        store.set("map-1", ["zone-1", "zone-3"])
        store.get("map-1")  # ["zone-1", "zone-3"]
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Callable[[list[str]], None]]] = {}
        self._subscribers_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Public contract
    # ------------------------------------------------------------------

    def get(self, key: str) -> list[str]:
        """Return the stored id list for *key* (``[]`` when absent).

        Raises:
            StoreError: If the backend cannot be read.
        """
        _check_key(key)
        ids = self._read(key)
        return list(ids) if ids is not None else []

    def set(self, key: str, ids: Sequence[str]) -> None:
        """Store *ids* under *key* and notify subscribers.

        Raises:
            StoreError: If the backend cannot be written.
        """
        _check_key(key)
        payload = list(ids)
        self._write(key, payload)
        self._notify(key, payload)

    def subscribe(
        self,
        key: str,
        callback: Callable[[list[str]], None],
    ) -> Callable[[], None]:
        """Call *callback* with the new id list after each ``set(key, ...)``.

        Returns:
            A zero-argument function that removes the subscription.
        """
        _check_key(key)
        with self._subscribers_lock:
            self._subscribers.setdefault(key, []).append(callback)

        def _unsubscribe() -> None:
            with self._subscribers_lock:
                callbacks = self._subscribers.get(key, [])
                if callback in callbacks:
                    callbacks.remove(callback)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Backend hooks
    # ------------------------------------------------------------------

    @abc.abstractmethod
    def _read(self, key: str) -> list[str] | None:
        """Return the stored ids, or ``None`` when *key* is absent."""

    @abc.abstractmethod
    def _write(self, key: str, ids: list[str]) -> None:
        """Persist *ids* under *key*."""

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _notify(self, key: str, ids: list[str]) -> None:
        with self._subscribers_lock:
            callbacks = list(self._subscribers.get(key, []))
        for callback in callbacks:
            callback(list(ids))


def _check_key(key: str) -> None:
    if not key:
        msg = "Store key must be non-empty"
        raise ValueError(msg)
