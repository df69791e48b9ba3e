"""Per-zone measurements that absorb Geometry Oracle failures.

One malformed zone geometry must never abort a whole batch operation, so
every helper here logs whatever the oracle raised (``GeometryError`` from
the shapely oracle, anything from a host-supplied one) and returns a
neutral value instead of raising.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from zone_selection.geometry.oracle import GeometryOracle, Point
    from zone_selection.models.zone import BBox, Zone

logger = logging.getLogger("zone_selection.geometry.measure")


def zone_area(zone: Zone, oracle: GeometryOracle) -> float:
    """Area in square metres, preferring the zone's cached ``area`` property.

    The cached value is used whenever it is present, so the same zone set
    always yields the same total.
    """
    cached = zone.cached_area
    if cached is not None:
        return cached
    try:
        return oracle.area(zone.geometry)
    except Exception as exc:
        logger.warning("Area unavailable, counting zero | zone=%s | error=%s", zone.id, exc)
        return 0.0


def zone_perimeter(zone: Zone, oracle: GeometryOracle) -> float:
    """Perimeter in metres (zero when the oracle fails)."""
    try:
        return oracle.perimeter(zone.geometry)
    except Exception as exc:
        logger.warning("Perimeter unavailable, counting zero | zone=%s | error=%s", zone.id, exc)
        return 0.0


def zone_centroid(zone: Zone, oracle: GeometryOracle) -> Point | None:
    """Centroid ``(lon, lat)``, or ``None`` when the oracle fails."""
    try:
        return oracle.centroid(zone.geometry)
    except Exception as exc:
        logger.warning("Centroid unavailable | zone=%s | error=%s", zone.id, exc)
        return None


def zone_bbox(zone: Zone, oracle: GeometryOracle) -> BBox | None:
    """Bounding box from the zone record or the oracle, ``None`` on failure."""
    if zone.bbox is not None:
        return zone.bbox
    try:
        return oracle.bbox(zone.geometry)
    except Exception as exc:
        logger.warning("Bounds unavailable | zone=%s | error=%s", zone.id, exc)
        return None


def safe_predicate(predicate: Callable[[], bool], description: str) -> bool:
    """Evaluate an oracle predicate, treating failure as ``False``."""
    try:
        return bool(predicate())
    except Exception as exc:
        logger.warning("Predicate failed, treating as false | %s | error=%s", description, exc)
        return False
