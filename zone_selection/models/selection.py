"""Typed models for selection state, constraints and notifications.

Defines the data structures exchanged between the engine and its
components:

- ``SelectionMode`` / ``SelectionSource``: enums (no magic strings)
- ``SelectionState``: the engine's authoritative state value
- ``SelectionConstraints``: conjunctive bounds a candidate set must meet
- ``ValidationResult``: outcome of a constraint check
- ``SelectionChangeEvent``: notification payload
- ``SelectionMetrics``: derived measurements of the current selection

Design notes:
- Models are frozen dataclasses; a state transition always produces a
  new ``SelectionState`` value.
- ``SelectionState`` holds a mutable ``set`` and ``list`` so that the
  history manager's clone-on-store contract is meaningful; nothing in
  the engine mutates them in place.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from zone_selection.core.exceptions import InvariantError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from zone_selection.models.zone import BBox, Zone


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class SelectionMode(enum.Enum):
    """How many zones may be selected at once.

    Values:
        SINGLE:   At most one zone; selecting replaces the selection.
        MULTIPLE: Any number of zones, appended in selection order.
        RANGE:    Behaves as ``MULTIPLE`` for state transitions.
    """

    SINGLE = "single"
    MULTIPLE = "multiple"
    RANGE = "range"


class SelectionSource(enum.Enum):
    """Origin of a selection change, reported on change events."""

    CLICK = "click"
    KEYBOARD = "keyboard"
    API = "api"
    DRAW = "draw"


# ---------------------------------------------------------------------------
# Validation models
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of validating a candidate selection.

    Attributes:
        valid: ``True`` when no constraint was violated.
        errors: Every violation message, in check order.
        warnings: Non-blocking messages (from the custom validator).
    """

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def ok(cls, warnings: Sequence[str] = ()) -> ValidationResult:
        return cls(valid=True, errors=[], warnings=list(warnings))


@dataclass(frozen=True, slots=True)
class SelectionConstraints:
    """Optional bounds on a selection.  All checks are conjunctive.

    Attributes:
        max_selections: Maximum number of zones.
        min_selections: Minimum number of zones.
        max_area: Maximum total area in square metres.
        min_area: Minimum total area in square metres.
        max_distance: Maximum centroid-to-centroid distance between any
            two selected zones, in metres.
        allowed_properties: Every selected zone must carry these exact
            property values.
        custom_validator: Callable receiving the candidate zones and
            returning a ``ValidationResult``.
    """

    max_selections: int | None = None
    min_selections: int | None = None
    max_area: float | None = None
    min_area: float | None = None
    max_distance: float | None = None
    allowed_properties: dict[str, Any] | None = None
    custom_validator: Callable[[list[Zone]], ValidationResult] | None = None

    def with_max_selections(self, max_selections: int | None) -> SelectionConstraints:
        """Return a copy whose ``max_selections`` is overridden when given."""
        if max_selections is None:
            return self
        return replace(self, max_selections=max_selections)

    def copy(self) -> SelectionConstraints:
        """Return a copy with its own ``allowed_properties`` mapping."""
        if self.allowed_properties is None:
            return replace(self)
        return replace(self, allowed_properties=dict(self.allowed_properties))


# ---------------------------------------------------------------------------
# Selection state
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SelectionState:
    """The engine's authoritative selection state.

    Invariants (checked on construction, violations raise
    ``InvariantError``):
        - ``selection_order`` has no duplicates.
        - ``selected_ids`` and ``selection_order`` hold the same ids.

    Attributes:
        selected_ids: Set of selected zone ids for O(1) lookup.
        selection_order: Selected ids, first-selected first.
        last_selected_id: Most recently added id, or ``None``.
        mode: Active selection mode.
        constraints: Active constraints, or ``None``.
    """

    selected_ids: set[str] = field(default_factory=set)
    selection_order: list[str] = field(default_factory=list)
    last_selected_id: str | None = None
    mode: SelectionMode = SelectionMode.MULTIPLE
    constraints: SelectionConstraints | None = None

    def __post_init__(self) -> None:
        if len(self.selection_order) != len(set(self.selection_order)):
            msg = f"selection_order contains duplicates: {self.selection_order!r}"
            raise InvariantError(msg, stage="state")
        if set(self.selection_order) != self.selected_ids:
            msg = (
                f"selected_ids {sorted(self.selected_ids)!r} do not match "
                f"selection_order {self.selection_order!r}"
            )
            raise InvariantError(msg, stage="state")

    @classmethod
    def from_ids(
        cls,
        ids: Iterable[str],
        *,
        mode: SelectionMode = SelectionMode.MULTIPLE,
        constraints: SelectionConstraints | None = None,
    ) -> SelectionState:
        """Build a state from an ordered id sequence, dropping duplicates."""
        order = list(dict.fromkeys(ids))
        return cls(
            selected_ids=set(order),
            selection_order=order,
            last_selected_id=order[-1] if order else None,
            mode=mode,
            constraints=constraints,
        )

    def clone(self) -> SelectionState:
        """Return a copy that shares no mutable collections with ``self``."""
        return SelectionState(
            selected_ids=set(self.selected_ids),
            selection_order=list(self.selection_order),
            last_selected_id=self.last_selected_id,
            mode=self.mode,
            constraints=self.constraints.copy() if self.constraints else None,
        )

    def __len__(self) -> int:
        return len(self.selection_order)


# ---------------------------------------------------------------------------
# Notifications and metrics
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SelectionChangeEvent:
    """Change notification delivered to ``on_selection_change``.

    Attributes:
        added: Zones newly in the selection.
        removed: Zones newly out of the selection.
        current: Full selection after the change, in selection order.
        source: Origin of the change.
    """

    added: list[Zone] = field(default_factory=list)
    removed: list[Zone] = field(default_factory=list)
    current: list[Zone] = field(default_factory=list)
    source: SelectionSource = SelectionSource.API

    @classmethod
    def merge(cls, events: Sequence[SelectionChangeEvent]) -> SelectionChangeEvent:
        """Merge a batch into one event.

        ``added`` and ``removed`` are concatenated in order; ``current``
        and ``source`` come from the chronologically last event.

        Raises:
            ValueError: If *events* is empty.
        """
        if not events:
            msg = "Cannot merge an empty event batch"
            raise ValueError(msg)
        last = events[-1]
        return cls(
            added=[zone for event in events for zone in event.added],
            removed=[zone for event in events for zone in event.removed],
            current=list(last.current),
            source=last.source,
        )


@dataclass(frozen=True, slots=True)
class SelectionMetrics:
    """Measurements of the current selection.

    Attributes:
        count: Number of selected zones.
        total_area: Sum of zone areas in square metres.
        total_perimeter: Sum of zone perimeters in metres.
        average_area: ``total_area / count`` (0 when empty).
        largest_zone: Zone with the greatest area, or ``None``.
        smallest_zone: Zone with the least area, or ``None``.
        bounds: Combined bounding box of the selection, or ``None``.
    """

    count: int = 0
    total_area: float = 0.0
    total_perimeter: float = 0.0
    average_area: float = 0.0
    largest_zone: Zone | None = None
    smallest_zone: Zone | None = None
    bounds: BBox | None = None
