"""Selection reducer: pure ``(state, action) -> state`` transitions.

No side effects. No I/O. Deterministic.  Given the same state and action
the reducer always produces an equal state, which keeps history replay
exact.

The input state is never modified: every transition builds new
collections.  A transition that changes nothing returns the *identical*
input object so callers can detect no-ops with ``is``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from zone_selection.core.exceptions import InvariantError
from zone_selection.models.selection import SelectionMode, SelectionState

if TYPE_CHECKING:
    from collections.abc import Callable

    from zone_selection.models.zone import Zone

# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SelectZone:
    """Add one zone (replaces the selection in single mode)."""

    zone: Zone


@dataclass(frozen=True, slots=True)
class DeselectZone:
    """Remove one zone id."""

    zone_id: str


@dataclass(frozen=True, slots=True)
class SelectMultiple:
    """Append several zones in input order, skipping ones already selected."""

    zones: list[Zone] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class DeselectMultiple:
    """Remove every matching zone id."""

    zone_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ClearSelection:
    """Empty the selection."""


@dataclass(frozen=True, slots=True)
class SetMode:
    """Change the selection mode without reshaping the current selection."""

    mode: SelectionMode


@dataclass(frozen=True, slots=True)
class RestoreState:
    """Replace the state wholesale (undo/redo and explicit loads)."""

    state: SelectionState


SelectionAction = (
    SelectZone | DeselectZone | SelectMultiple | DeselectMultiple | ClearSelection | SetMode | RestoreState
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def reduce_selection(state: SelectionState, action: SelectionAction) -> SelectionState:
    """Apply one action to *state* and return the resulting state.

    Raises:
        InvariantError: If *action* is not a known selection action.
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        msg = f"Unknown selection action: {type(action).__name__}"
        raise InvariantError(msg, stage="reducer")
    return handler(state, action)


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _select_zone(state: SelectionState, action: SelectZone) -> SelectionState:
    zone_id = action.zone.id
    if zone_id in state.selected_ids:
        return state

    if state.mode is SelectionMode.SINGLE:
        return _with_order(state, [zone_id], last_selected_id=zone_id)

    return _with_order(state, [*state.selection_order, zone_id], last_selected_id=zone_id)


def _deselect_zone(state: SelectionState, action: DeselectZone) -> SelectionState:
    if action.zone_id not in state.selected_ids:
        return state
    order = [zone_id for zone_id in state.selection_order if zone_id != action.zone_id]
    return _with_order(state, order, last_selected_id=order[-1] if order else None)


def _select_multiple(state: SelectionState, action: SelectMultiple) -> SelectionState:
    if not action.zones:
        return state

    if state.mode is SelectionMode.SINGLE:
        last_id = action.zones[-1].id
        if state.selection_order == [last_id]:
            return state
        return _with_order(state, [last_id], last_selected_id=last_id)

    new_ids: list[str] = []
    seen = set(state.selected_ids)
    for zone in action.zones:
        if zone.id not in seen:
            seen.add(zone.id)
            new_ids.append(zone.id)

    if not new_ids:
        return state
    return _with_order(state, [*state.selection_order, *new_ids], last_selected_id=new_ids[-1])


def _deselect_multiple(state: SelectionState, action: DeselectMultiple) -> SelectionState:
    to_remove = set(action.zone_ids)
    if not to_remove & state.selected_ids:
        return state
    order = [zone_id for zone_id in state.selection_order if zone_id not in to_remove]
    return _with_order(state, order, last_selected_id=order[-1] if order else None)


def _clear_selection(state: SelectionState, _action: ClearSelection) -> SelectionState:
    if not state.selection_order and state.last_selected_id is None:
        return state
    return _with_order(state, [], last_selected_id=None)


def _set_mode(state: SelectionState, action: SetMode) -> SelectionState:
    if state.mode is action.mode:
        return state
    return replace(state, mode=action.mode)


def _restore_state(_state: SelectionState, action: RestoreState) -> SelectionState:
    return action.state


def _with_order(
    state: SelectionState,
    order: list[str],
    *,
    last_selected_id: str | None,
) -> SelectionState:
    """Return a copy of *state* with a new order and matching id set."""
    return replace(
        state,
        selected_ids=set(order),
        selection_order=order,
        last_selected_id=last_selected_id,
    )


_HANDLERS: dict[type, Callable[[SelectionState, SelectionAction], SelectionState]] = {
    SelectZone: _select_zone,  # type: ignore[dict-item]
    DeselectZone: _deselect_zone,  # type: ignore[dict-item]
    SelectMultiple: _select_multiple,  # type: ignore[dict-item]
    DeselectMultiple: _deselect_multiple,  # type: ignore[dict-item]
    ClearSelection: _clear_selection,  # type: ignore[dict-item]
    SetMode: _set_mode,  # type: ignore[dict-item]
    RestoreState: _restore_state,  # type: ignore[dict-item]
}
