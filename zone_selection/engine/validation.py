"""Constraint Validator.

Validates a candidate selection against ``SelectionConstraints``.  Pure:
no state, no side effects beyond logging absorbed geometry failures.

Checks run in a fixed order and every failing check contributes its
message, so callers see the complete violation set in one call:

1. selection count bounds
2. total area bounds (square metres)
3. maximum pairwise centroid distance (metres)
4. required property values, per zone
5. the custom validator, whose warnings pass through unmodified
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from zone_selection.core.constants import (
    CONSTRAINT_VIOLATION,
    MAX_SELECTIONS,
    METRES_PER_KM,
    MIN_SELECTIONS,
    SQ_METRES_PER_HECTARE,
    SQ_METRES_PER_SQ_KM,
    VALIDATION_FAILED,
)
from zone_selection.core.exceptions import ValidationError
from zone_selection.geometry.measure import zone_area, zone_centroid
from zone_selection.models.selection import ValidationResult

if TYPE_CHECKING:
    from collections.abc import Sequence

    from zone_selection.geometry.oracle import GeometryOracle
    from zone_selection.models.selection import SelectionConstraints
    from zone_selection.models.zone import Zone

logger = logging.getLogger("zone_selection.engine.validation")

_MISSING = object()


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class SelectionValidationError(ValidationError):
    """A candidate selection violated one or more constraints.

    Delivered to the engine's ``on_selection_error`` callback; the
    selection is left unchanged.

    Attributes:
        errors: Every violation message, in check order.
        warnings: Non-blocking warnings from the custom validator.
        zone: The zone being selected, for single-zone operations.
        zones: The zones being selected, for multi-zone operations.
    """

    default_stage = "validation"
    default_code = VALIDATION_FAILED

    def __init__(
        self,
        errors: Sequence[str],
        *,
        zone: Zone | None = None,
        zones: Sequence[Zone] | None = None,
        warnings: Sequence[str] = (),
    ) -> None:
        self.errors = list(errors)
        self.warnings = list(warnings)
        self.zone = zone
        self.zones = list(zones) if zones is not None else None
        super().__init__(", ".join(self.errors))

    def to_error_dict(self) -> dict[str, object]:
        payload = super().to_error_dict()
        if self.zone is not None:
            payload["zone_ids"] = [self.zone.id]
        elif self.zones is not None:
            payload["zone_ids"] = [zone.id for zone in self.zones]
        else:
            payload["zone_ids"] = []
        return payload


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_constraints(
    zones: Sequence[Zone],
    constraints: SelectionConstraints | None,
    oracle: GeometryOracle | None = None,
    *,
    selection_count: int | None = None,
) -> ValidationResult:
    """Validate *zones* as a whole against *constraints*.

    Args:
        zones: The candidate selection.
        constraints: Active constraints; ``None`` always validates.
        oracle: Geometry Oracle for area and distance checks.  A
            ``ShapelyGeometryOracle`` is created on demand if omitted.
        selection_count: Number of selected ids to check the count
            bounds against, when it differs from ``len(zones)`` because
            some selected ids have no zone in the current catalog.

    Returns:
        A ``ValidationResult`` listing every violated constraint.
    """
    if constraints is None:
        return ValidationResult.ok()

    errors: list[str] = []
    warnings: list[str] = []
    count = len(zones) if selection_count is None else selection_count

    if constraints.max_selections is not None and count > constraints.max_selections:
        _fail(errors, MAX_SELECTIONS, f"Maximum {constraints.max_selections} zones can be selected")

    if constraints.min_selections is not None and count < constraints.min_selections:
        _fail(errors, MIN_SELECTIONS, f"Minimum {constraints.min_selections} zones must be selected")

    if zones and (constraints.max_area is not None or constraints.min_area is not None):
        total_area = calculate_total_area(zones, oracle or _default_oracle())
        if constraints.max_area is not None and total_area > constraints.max_area:
            message = f"Total area exceeds maximum of {format_area(constraints.max_area)}"
            _fail(errors, CONSTRAINT_VIOLATION, message)
        if constraints.min_area is not None and total_area < constraints.min_area:
            message = f"Total area is below minimum of {format_area(constraints.min_area)}"
            _fail(errors, CONSTRAINT_VIOLATION, message)

    if constraints.max_distance is not None and len(zones) > 1:
        max_distance = calculate_max_distance(zones, oracle or _default_oracle())
        if max_distance > constraints.max_distance:
            _fail(
                errors,
                CONSTRAINT_VIOLATION,
                f"Maximum distance between zones ({format_distance(max_distance)}) "
                f"exceeds limit of {format_distance(constraints.max_distance)}",
            )

    if constraints.allowed_properties:
        for zone in zones:
            if not _matches_properties(zone, constraints.allowed_properties):
                message = f'Zone "{zone.name or zone.id}" does not match required properties'
                _fail(errors, CONSTRAINT_VIOLATION, message)

    if constraints.custom_validator is not None:
        custom = constraints.custom_validator(list(zones))
        if not custom.valid:
            errors.extend(custom.errors)
        warnings.extend(custom.warnings)

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def calculate_total_area(zones: Sequence[Zone], oracle: GeometryOracle) -> float:
    """Sum of zone areas in square metres (cached ``area`` preferred)."""
    return sum(zone_area(zone, oracle) for zone in zones)


def calculate_max_distance(zones: Sequence[Zone], oracle: GeometryOracle) -> float:
    """Largest centroid-to-centroid distance in metres between any two zones.

    Zones whose centroid cannot be computed are left out of the
    comparison; a failed distance computation counts as zero.
    """
    centroids = [c for c in (zone_centroid(zone, oracle) for zone in zones) if c is not None]
    max_distance = 0.0
    for i in range(len(centroids) - 1):
        for j in range(i + 1, len(centroids)):
            try:
                distance = oracle.distance(centroids[i], centroids[j])
            except Exception as exc:
                logger.warning("Distance unavailable, counting zero | error=%s", exc)
                continue
            max_distance = max(max_distance, distance)
    return max_distance


def format_area(area_m2: float) -> str:
    """Human-readable area: m² below 1 ha, hectares below 1 km², else km²."""
    if area_m2 < SQ_METRES_PER_HECTARE:
        return f"{round(area_m2)} m²"
    if area_m2 < SQ_METRES_PER_SQ_KM:
        return f"{area_m2 / SQ_METRES_PER_HECTARE:.2f} hectares"
    return f"{area_m2 / SQ_METRES_PER_SQ_KM:.2f} km²"


def format_distance(distance_m: float) -> str:
    """Human-readable distance: metres below 1 km, else kilometres."""
    if distance_m < METRES_PER_KM:
        return f"{round(distance_m)} m"
    return f"{distance_m / METRES_PER_KM:.2f} km"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _fail(errors: list[str], code: str, message: str) -> None:
    logger.debug("Constraint failed | code=%s | %s", code, message)
    errors.append(message)


def _matches_properties(zone: Zone, required: dict[str, object]) -> bool:
    return all(zone.properties.get(key, _MISSING) == value for key, value in required.items())


def _default_oracle() -> GeometryOracle:
    from zone_selection.geometry.oracle import ShapelyGeometryOracle

    return ShapelyGeometryOracle()
