"""Data models and schemas.

Defines the data structures used throughout the engine:
- Zone: Selectable polygon region supplied by the host
- ViewportBounds: Rectangular map viewport
- SelectionState: Authoritative selection state
- SelectionConstraints / ValidationResult: Constraint checking
- SelectionChangeEvent / SelectionMetrics: Notifications and measurements
- PersistedSelection: Stored selection document
"""

from zone_selection.models.selection import (
    SelectionChangeEvent,
    SelectionConstraints,
    SelectionMetrics,
    SelectionMode,
    SelectionSource,
    SelectionState,
    ValidationResult,
)
from zone_selection.models.zone import ViewportBounds, Zone

__all__ = [
    "Zone",
    "ViewportBounds",
    "SelectionState",
    "SelectionMode",
    "SelectionSource",
    "SelectionConstraints",
    "ValidationResult",
    "SelectionChangeEvent",
    "SelectionMetrics",
]
