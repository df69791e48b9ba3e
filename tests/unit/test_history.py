"""Tests for the undo/redo history manager.

Covers:
- Cursor arithmetic for can_undo / can_redo
- Redo branch pruning on push after undo
- Capacity trimming from the front
- Clone-on-store and clone-on-retrieve isolation
"""

from __future__ import annotations

import pytest

from zone_selection.core.exceptions import InvariantError
from zone_selection.engine.history import SelectionHistory
from zone_selection.models.selection import SelectionState


def _state(*ids: str) -> SelectionState:
    return SelectionState.from_ids(ids)


class TestHistoryBasics:
    """Empty and seeded histories."""

    def test_empty_history(self) -> None:
        history = SelectionHistory()
        assert history.size() == 0
        assert history.cursor == -1
        assert history.current() is None
        assert not history.can_undo()
        assert not history.can_redo()
        assert history.undo() is None
        assert history.redo() is None

    def test_default_capacity(self) -> None:
        assert SelectionHistory().max_size == 50

    def test_seed_cannot_be_undone(self) -> None:
        history = SelectionHistory()
        history.push(_state())
        assert history.size() == 1
        assert not history.can_undo()

    @pytest.mark.parametrize("size", [0, -3])
    def test_invalid_capacity_rejected(self, size: int) -> None:
        with pytest.raises(ValueError, match="max_size"):
            SelectionHistory(size)


class TestUndoRedo:
    """Undo and redo walk the recorded path."""

    def test_undo_then_redo(self) -> None:
        history = SelectionHistory()
        for state in (_state(), _state("a"), _state("a", "b")):
            history.push(state)

        assert history.undo().selection_order == ["a"]
        assert history.undo().selection_order == []
        assert not history.can_undo()
        assert history.redo().selection_order == ["a"]
        assert history.redo().selection_order == ["a", "b"]
        assert not history.can_redo()

    def test_push_after_undo_discards_redo_branch(self) -> None:
        history = SelectionHistory()
        for state in (_state(), _state("a"), _state("a", "b")):
            history.push(state)
        history.undo()
        history.push(_state("a", "c"))

        assert not history.can_redo()
        assert history.size() == 3
        assert history.current().selection_order == ["a", "c"]
        assert history.undo().selection_order == ["a"]


class TestCapacity:
    """Oldest snapshots fall off the front."""

    def test_trims_front_and_rebases_cursor(self) -> None:
        history = SelectionHistory(max_size=3)
        for i in range(5):
            history.push(_state(*[f"z{j}" for j in range(i)]))

        assert history.size() == 3
        assert history.cursor == 2
        assert history.undo().selection_order == ["z0", "z1", "z2"]
        assert history.undo().selection_order == ["z0", "z1"]
        assert not history.can_undo()

    def test_capacity_of_one(self) -> None:
        history = SelectionHistory(max_size=1)
        history.push(_state("a"))
        history.push(_state("b"))
        assert history.size() == 1
        assert not history.can_undo()
        assert history.current().selection_order == ["b"]


class TestSnapshotIsolation:
    """Snapshots are deep-copied on the way in and out."""

    def test_mutating_pushed_state_does_not_leak(self) -> None:
        history = SelectionHistory()
        state = _state("a")
        history.push(state)
        state.selected_ids.add("x")
        state.selection_order.append("x")
        assert history.current().selection_order == ["a"]

    def test_mutating_returned_snapshot_does_not_leak(self) -> None:
        history = SelectionHistory()
        history.push(_state("a"))
        history.push(_state("a", "b"))
        snapshot = history.undo()
        snapshot.selection_order.clear()
        snapshot.selected_ids.clear()
        assert history.current().selection_order == ["a"]

    def test_clear_drops_everything(self) -> None:
        history = SelectionHistory()
        history.push(_state("a"))
        history.push(_state("b"))
        history.clear()
        assert len(history) == 0
        assert history.cursor == -1
        assert not history.can_undo()

    def test_out_of_range_cursor_fails_fast(self) -> None:
        history = SelectionHistory()
        history.push(_state("a"))
        with pytest.raises(InvariantError):
            history._snapshot_at(5)
