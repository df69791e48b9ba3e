"""GeometryOracle abstract base class and the shapely/pyproj implementation.

The selection engine never performs computational geometry itself; it
asks an oracle.  The engine interacts exclusively with the
``GeometryOracle`` interface, so hosts may plug in their own.

``ShapelyGeometryOracle``:
- Predicates, centroid and bounds via shapely.
- Area, perimeter and point distance on the WGS 84 ellipsoid via
  ``pyproj.Geod``, so results are metric regardless of latitude.
- Buffering projects to the local UTM zone, buffers in metres and
  projects back (never buffers in degrees).

Every failure is raised as ``GeometryError``; callers decide whether a
failed computation counts as "predicate false" or "zero contribution".
"""

from __future__ import annotations

import abc
import contextlib
import logging
from typing import TYPE_CHECKING, Any

from zone_selection.core.exceptions import GeometryError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from shapely.geometry.base import BaseGeometry

    from zone_selection.models.zone import BBox

logger = logging.getLogger("zone_selection.geometry.oracle")

Point = tuple[float, float]
"""``(lon, lat)`` in WGS 84 degrees."""

Geometry = Any
"""A GeoJSON geometry mapping or a shapely geometry."""


class GeometryOracle(abc.ABC):
    """Abstract polygon predicates and measurements.

    Implementations must be deterministic for a fixed geometry pair.
    Units: square metres for area, metres for perimeter and distance,
    ``(lon, lat)`` degrees for points.
    """

    @abc.abstractmethod
    def intersects(self, a: Geometry, b: Geometry) -> bool:
        """Whether *a* and *b* share any point (touching counts)."""

    @abc.abstractmethod
    def overlaps(self, a: Geometry, b: Geometry) -> bool:
        """Whether *a* and *b* share interior area without containment."""

    @abc.abstractmethod
    def within(self, a: Geometry, b: Geometry) -> bool:
        """Whether *a* lies entirely inside *b*."""

    @abc.abstractmethod
    def area(self, geom: Geometry) -> float:
        """Geodesic area in square metres."""

    @abc.abstractmethod
    def perimeter(self, geom: Geometry) -> float:
        """Geodesic perimeter in metres."""

    @abc.abstractmethod
    def centroid(self, geom: Geometry) -> Point:
        """Centroid as ``(lon, lat)``."""

    @abc.abstractmethod
    def bbox(self, geom: Geometry) -> BBox:
        """Bounding box ``(min_lon, min_lat, max_lon, max_lat)``."""

    @abc.abstractmethod
    def distance(self, a: Point, b: Point) -> float:
        """Geodesic distance between two points in metres."""

    @abc.abstractmethod
    def buffer(self, geom: Geometry, tolerance_m: float) -> Geometry:
        """Return *geom* grown by *tolerance_m* metres."""

    @abc.abstractmethod
    def point_in_polygon(self, point: Point, polygon: Geometry) -> bool:
        """Whether *point* lies inside or on the boundary of *polygon*."""


class ShapelyGeometryOracle(GeometryOracle):
    """Geometry Oracle backed by shapely and pyproj.

    Example usage::

        oracle = ShapelyGeometryOracle()
        oracle.area(zone.geometry)          # m²
        oracle.intersects(zone_a.geometry, zone_b.geometry)
    """

    def __init__(self, ellps: str = "WGS84") -> None:
        from pyproj import Geod

        self._geod = Geod(ellps=ellps)

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    def intersects(self, a: Geometry, b: Geometry) -> bool:
        with _geometry_op("intersects"):
            return bool(_as_shape(a).intersects(_as_shape(b)))

    def overlaps(self, a: Geometry, b: Geometry) -> bool:
        with _geometry_op("overlaps"):
            return bool(_as_shape(a).overlaps(_as_shape(b)))

    def within(self, a: Geometry, b: Geometry) -> bool:
        with _geometry_op("within"):
            return bool(_as_shape(a).within(_as_shape(b)))

    def point_in_polygon(self, point: Point, polygon: Geometry) -> bool:
        with _geometry_op("point_in_polygon"):
            from shapely.geometry import Point as ShapelyPoint

            return bool(_as_shape(polygon).covers(ShapelyPoint(point)))

    # ------------------------------------------------------------------
    # Measurements
    # ------------------------------------------------------------------

    def area(self, geom: Geometry) -> float:
        with _geometry_op("area"):
            area_m2, _perimeter = self._geod.geometry_area_perimeter(_as_shape(geom))
            return abs(area_m2)

    def perimeter(self, geom: Geometry) -> float:
        with _geometry_op("perimeter"):
            _area, perimeter_m = self._geod.geometry_area_perimeter(_as_shape(geom))
            return perimeter_m

    def centroid(self, geom: Geometry) -> Point:
        with _geometry_op("centroid"):
            shp = _as_shape(geom)
            if shp.is_empty:
                msg = "Cannot compute centroid of an empty geometry"
                raise ValueError(msg)
            centroid = shp.centroid
            return (centroid.x, centroid.y)

    def bbox(self, geom: Geometry) -> BBox:
        with _geometry_op("bbox"):
            shp = _as_shape(geom)
            if shp.is_empty:
                msg = "Cannot compute bounds of an empty geometry"
                raise ValueError(msg)
            min_lon, min_lat, max_lon, max_lat = shp.bounds
            return (min_lon, min_lat, max_lon, max_lat)

    def distance(self, a: Point, b: Point) -> float:
        with _geometry_op("distance"):
            _fwd, _back, dist_m = self._geod.inv(a[0], a[1], b[0], b[1])
            return abs(dist_m)

    # ------------------------------------------------------------------
    # Buffering
    # ------------------------------------------------------------------

    def buffer(self, geom: Geometry, tolerance_m: float) -> Geometry:
        """Buffer *geom* by *tolerance_m* metres in the local UTM zone.

        Returns a GeoJSON mapping.  A zero tolerance returns the geometry
        unchanged (as a mapping).

        Raises:
            GeometryError: If the tolerance is negative or projection fails.
        """
        with _geometry_op("buffer"):
            from pyproj import Transformer
            from shapely.geometry import mapping
            from shapely.ops import transform

            if tolerance_m < 0:
                msg = f"Buffer tolerance {tolerance_m} m must be >= 0"
                raise ValueError(msg)

            shp = _as_shape(geom)
            if tolerance_m == 0:
                return mapping(shp)

            centre = shp.centroid
            utm_crs = _get_utm_crs(centre.x, centre.y)
            to_utm = Transformer.from_crs("EPSG:4326", utm_crs, always_xy=True)
            to_wgs = Transformer.from_crs(utm_crs, "EPSG:4326", always_xy=True)

            projected = transform(to_utm.transform, shp)
            buffered = projected.buffer(tolerance_m)
            return mapping(transform(to_wgs.transform, buffered))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@contextlib.contextmanager
def _geometry_op(operation: str) -> Iterator[None]:
    """Re-raise any failure inside the block as ``GeometryError``."""
    try:
        yield
    except GeometryError:
        raise
    except Exception as exc:
        msg = f"Geometry operation '{operation}' failed: {exc}"
        raise GeometryError(msg) from exc


def _as_shape(geom: Geometry) -> BaseGeometry:
    """Return a shapely geometry for a GeoJSON mapping or shapely object."""
    if hasattr(geom, "geom_type"):
        return geom
    from shapely.geometry import shape

    return shape(geom)


def _get_utm_crs(lon: float, lat: float) -> str:
    """Determine the UTM CRS for a given WGS 84 coordinate.

    Returns an EPSG code like ``"EPSG:32610"`` (UTM zone 10N) or
    ``"EPSG:32710"`` (UTM zone 10S).
    """
    # 6° zones starting at -180°, clamped to 1-60
    zone_number = int((lon + 180) / 6) + 1
    zone_number = max(1, min(60, zone_number))

    if lat >= 0:
        return f"EPSG:{32600 + zone_number}"
    return f"EPSG:{32700 + zone_number}"
