"""Unified selection-engine exception taxonomy.

Every domain exception inherits from ``ZoneSelectionError`` and carries
structured context fields so callers, callbacks and logs see a consistent
error payload.

Taxonomy categories
-------------------
- ``ValidationError``  - bad input or constraint violations, never retryable.
- ``TransientError``   - temporary failures (store I/O), retryable.
- ``InvariantError``   - engine-internal programming errors, fail fast.
- ``GeometryError``    - a single Geometry Oracle computation failed.

Every exception exposes ``to_error_dict()`` for a stable structured
error payload suitable for callbacks and logging.
"""

from __future__ import annotations


class ZoneSelectionError(Exception):
    """Base exception for all selection-engine errors.

    Attributes:
        message: Human-readable error description.
        stage: Component where the error occurred
            (e.g. ``"validation"``, ``"history"``, ``"storage"``).
        code: Machine-readable error code (e.g. ``"VALIDATION_FAILED"``).
        retryable: Whether re-issuing the operation may succeed.
    """

    #: Default stage for subclasses (override via class attribute or kwarg).
    default_stage: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool = False,
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = retryable
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ValidationError):
            return "validation"
        if isinstance(self, InvariantError):
            return "invariant"
        if isinstance(self, GeometryError):
            return "geometry"
        if isinstance(self, TransientError):
            return "transient"
        return "transient" if self.retryable else "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(ZoneSelectionError):
    """Input or constraint validation failure. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class TransientError(ZoneSelectionError):
    """Temporary failure that may succeed on retry."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class InvariantError(ZoneSelectionError):
    """Internal invariant violated. Indicates a bug, never retryable."""

    default_code = "INVARIANT_VIOLATED"

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class GeometryError(ZoneSelectionError):
    """A Geometry Oracle computation failed for one geometry or pair."""

    default_stage = "geometry"
    default_code = "GEOMETRY_FAILED"


class StoreError(TransientError):
    """Persistent selection store read or write failure."""

    default_stage = "storage"
    default_code = "STORE_FAILED"


class ZoneValidationError(ValidationError):
    """A zone record is malformed or conflicts with the catalog."""

    default_stage = "catalog"
    default_code = "ZONE_INVALID"
