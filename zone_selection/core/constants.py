"""Shared selection-engine constants: single source of truth.

Centralises defaults, error codes and environment variable names that
would otherwise be duplicated across the config layer, the validator and
the engine.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Engine defaults
# ---------------------------------------------------------------------------

DEFAULT_MAX_HISTORY_SIZE: int = 50
"""Number of SelectionState snapshots retained for undo/redo."""

DEFAULT_DEBOUNCE_MS: int = 0
"""Notification debounce window; 0 delivers every change immediately."""

DEFAULT_STORE_BACKEND: str = "memory"
"""Persistent store backend used when none is configured."""

DEFAULT_BLOB_CONTAINER: str = "zone-selections"
"""Blob container holding persisted selections."""

# ---------------------------------------------------------------------------
# Error codes
# ---------------------------------------------------------------------------

VALIDATION_FAILED: str = "VALIDATION_FAILED"
"""Candidate selection violates one or more constraints."""

MAX_SELECTIONS: str = "MAX_SELECTIONS"
MIN_SELECTIONS: str = "MIN_SELECTIONS"
CONSTRAINT_VIOLATION: str = "CONSTRAINT_VIOLATION"

ENGINE_CLOSED: str = "ENGINE_CLOSED"
"""Operation attempted after the engine was closed."""

# ---------------------------------------------------------------------------
# Unit conversion (explicit units: square metres and metres)
# ---------------------------------------------------------------------------

SQ_METRES_PER_HECTARE: float = 10_000.0
SQ_METRES_PER_SQ_KM: float = 1_000_000.0
METRES_PER_KM: float = 1_000.0

# ---------------------------------------------------------------------------
# Environment variable names
# ---------------------------------------------------------------------------

ENV_PREFIX: str = "ZONE_SELECTION_"
