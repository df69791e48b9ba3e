"""History Manager: bounded undo/redo stack of SelectionState snapshots.

History is an append-only list plus an integer cursor pointing at the
current snapshot.  Snapshots are cloned on the way in and on the way out,
so mutating a returned state can never corrupt recorded history.

Rules:
    - ``can_undo()`` is ``cursor > 0``; ``can_redo()`` is
      ``cursor < len - 1``.
    - Pushing after an undo discards the redo branch first.
    - Exceeding ``max_size`` drops the oldest snapshots and re-bases the
      cursor.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from zone_selection.core.constants import DEFAULT_MAX_HISTORY_SIZE
from zone_selection.core.exceptions import InvariantError

if TYPE_CHECKING:
    from zone_selection.models.selection import SelectionState

logger = logging.getLogger("zone_selection.engine.history")


class SelectionHistory:
    """Undo/redo history for selection states.

    Args:
        max_size: Maximum number of snapshots kept (default 50).

    Raises:
        ValueError: If *max_size* is less than 1.
    """

    def __init__(self, max_size: int = DEFAULT_MAX_HISTORY_SIZE) -> None:
        if max_size < 1:
            msg = f"History max_size must be >= 1, got {max_size}"
            raise ValueError(msg)
        self._max_size = max_size
        self._entries: list[SelectionState] = []
        self._cursor = -1

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def cursor(self) -> int:
        """Index of the current snapshot (``-1`` when empty)."""
        return self._cursor

    def push(self, state: SelectionState) -> None:
        """Record *state* as the new current snapshot."""
        if self._cursor < len(self._entries) - 1:
            discarded = len(self._entries) - 1 - self._cursor
            del self._entries[self._cursor + 1 :]
            logger.debug("Redo branch discarded | snapshots=%d", discarded)

        self._entries.append(state.clone())
        self._cursor += 1

        overflow = len(self._entries) - self._max_size
        if overflow > 0:
            del self._entries[:overflow]
            self._cursor -= overflow

    def undo(self) -> SelectionState | None:
        """Step back one snapshot and return a clone of it, or ``None``."""
        if not self.can_undo():
            return None
        self._cursor -= 1
        return self._snapshot_at(self._cursor)

    def redo(self) -> SelectionState | None:
        """Step forward one snapshot and return a clone of it, or ``None``."""
        if not self.can_redo():
            return None
        self._cursor += 1
        return self._snapshot_at(self._cursor)

    def current(self) -> SelectionState | None:
        """Return a clone of the snapshot at the cursor, or ``None`` when empty."""
        if not self._entries:
            return None
        return self._snapshot_at(self._cursor)

    def can_undo(self) -> bool:
        return self._cursor > 0

    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    def clear(self) -> None:
        """Drop every snapshot."""
        self._entries = []
        self._cursor = -1

    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def _snapshot_at(self, index: int) -> SelectionState:
        if not 0 <= index < len(self._entries):
            msg = f"History cursor {index} out of range for {len(self._entries)} snapshots"
            raise InvariantError(msg, stage="history")
        return self._entries[index].clone()
