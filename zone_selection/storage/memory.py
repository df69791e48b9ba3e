"""In-process selection store.

Holds id lists in a lock-protected dict.  Suitable for tests, local
development and hosts that persist elsewhere.
"""

from __future__ import annotations

import threading

from zone_selection.storage.base import SelectionStore


class InMemorySelectionStore(SelectionStore):
    """Dict-backed store; contents live as long as the instance."""

    def __init__(self, initial: dict[str, list[str]] | None = None) -> None:
        super().__init__()
        self._data: dict[str, list[str]] = {k: list(v) for k, v in (initial or {}).items()}
        self._lock = threading.Lock()

    def _read(self, key: str) -> list[str] | None:
        with self._lock:
            ids = self._data.get(key)
            return list(ids) if ids is not None else None

    def _write(self, key: str, ids: list[str]) -> None:
        with self._lock:
            self._data[key] = list(ids)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        return len(self._data)
