"""Selection metrics.

Measurements are recomputed on every call in a single O(n) pass over the
selection.  Nothing is cached: the selection's identity can stay stable
while the host swaps in new geometry for the same ids.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from zone_selection.geometry.measure import zone_area, zone_bbox, zone_perimeter
from zone_selection.models.selection import SelectionMetrics

if TYPE_CHECKING:
    from collections.abc import Sequence

    from zone_selection.geometry.oracle import GeometryOracle
    from zone_selection.models.zone import BBox, Zone


def compute_selection_metrics(zones: Sequence[Zone], oracle: GeometryOracle) -> SelectionMetrics:
    """Compute count, area, perimeter, extremes and bounds for *zones*.

    Area prefers each zone's cached ``area`` property.  Zones whose
    geometry the oracle cannot measure contribute zero.  Ties for the
    largest/smallest zone go to the earliest-selected zone.
    """
    if not zones:
        return SelectionMetrics()

    total_area = 0.0
    total_perimeter = 0.0
    largest_zone = smallest_zone = zones[0]
    largest_area = smallest_area = zone_area(zones[0], oracle)
    bounds: BBox | None = None

    for index, zone in enumerate(zones):
        area = largest_area if index == 0 else zone_area(zone, oracle)
        total_area += area
        total_perimeter += zone_perimeter(zone, oracle)

        if area > largest_area:
            largest_area, largest_zone = area, zone
        if area < smallest_area:
            smallest_area, smallest_zone = area, zone

        bounds = _union_bbox(bounds, zone_bbox(zone, oracle))

    return SelectionMetrics(
        count=len(zones),
        total_area=total_area,
        total_perimeter=total_perimeter,
        average_area=total_area / len(zones),
        largest_zone=largest_zone,
        smallest_zone=smallest_zone,
        bounds=bounds,
    )


def _union_bbox(a: BBox | None, b: BBox | None) -> BBox | None:
    if a is None:
        return b
    if b is None:
        return a
    return (min(a[0], b[0]), min(a[1], b[1]), max(a[2], b[2]), max(a[3], b[3]))
