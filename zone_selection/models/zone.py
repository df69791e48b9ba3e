"""Data model for a selectable map zone.

A Zone is a named polygon or multipolygon region supplied by the host
application.  Zones are immutable for a given render cycle; the engine
only ever reads them through their identifiers.

All coordinates are WGS 84 (EPSG:4326) ``(lon, lat)`` pairs in GeoJSON
nesting.  Areas are square metres, distances metres.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from zone_selection.core.exceptions import ZoneValidationError

POLYGON_TYPES = ("Polygon", "MultiPolygon")

BBox = tuple[float, float, float, float]
"""``(min_lon, min_lat, max_lon, max_lat)``"""


@dataclass(frozen=True, slots=True)
class Zone:
    """A selectable polygon region.

    Attributes:
        id: Unique zone identifier within the catalog.
        name: Display name (e.g. ``"Arrondissement 4"``).
        geometry: GeoJSON ``Polygon`` or ``MultiPolygon`` mapping.
        properties: Free-form host properties.  A numeric ``area`` entry
            (square metres) is used instead of recomputing geometry.
        bbox: Optional precomputed bounding box.
    """

    id: str
    name: str = ""
    geometry: dict[str, Any] = field(default_factory=dict)
    properties: dict[str, Any] = field(default_factory=dict)
    bbox: BBox | None = None

    def __post_init__(self) -> None:
        if not self.id:
            msg = "Zone id must be a non-empty string"
            raise ZoneValidationError(msg)
        geom_type = self.geometry.get("type")
        if geom_type not in POLYGON_TYPES:
            msg = f"Zone {self.id!r} geometry must be Polygon or MultiPolygon, got {geom_type!r}"
            raise ZoneValidationError(msg)

    def __hash__(self) -> int:
        # geometry and properties are dicts; identity within a catalog is the id
        return hash(self.id)

    @property
    def cached_area(self) -> float | None:
        """Precomputed area in square metres from ``properties``, if any."""
        area = self.properties.get("area")
        if isinstance(area, bool) or not isinstance(area, (int, float)):
            return None
        return float(area)

    def to_dict(self) -> dict[str, object]:
        """Serialise to a GeoJSON ``Feature`` dict."""
        data: dict[str, object] = {
            "type": "Feature",
            "id": self.id,
            "geometry": self.geometry,
            "properties": {"name": self.name, **self.properties},
        }
        if self.bbox is not None:
            data["bbox"] = list(self.bbox)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Zone:
        """Deserialise from a GeoJSON ``Feature`` dict.

        The identifier is taken from the feature ``id`` or, failing that,
        from ``properties["id"]``.  The display name comes from
        ``properties["name"]``.

        Raises:
            ZoneValidationError: If the feature has no id or a
                non-polygon geometry.
            TypeError: If field values have unexpected types.
        """
        properties_raw = data.get("properties") or {}
        if not isinstance(properties_raw, dict):
            msg = f"properties must be a dict, got {type(properties_raw).__name__}"
            raise TypeError(msg)
        properties = dict(properties_raw)

        geometry = data.get("geometry") or {}
        if not isinstance(geometry, dict):
            msg = f"geometry must be a dict, got {type(geometry).__name__}"
            raise TypeError(msg)

        zone_id = data.get("id", properties.pop("id", ""))
        name = properties.pop("name", "")

        bbox_raw = data.get("bbox")
        bbox: BBox | None = None
        if bbox_raw is not None:
            if not isinstance(bbox_raw, (list, tuple)) or len(bbox_raw) != 4:
                msg = f"bbox must be a 4-element list, got {bbox_raw!r}"
                raise TypeError(msg)
            bbox = tuple(float(v) for v in bbox_raw)  # type: ignore[assignment]

        return cls(
            id=str(zone_id) if zone_id is not None else "",
            name=str(name),
            geometry=geometry,
            properties=properties,
            bbox=bbox,
        )


@dataclass(frozen=True, slots=True)
class ViewportBounds:
    """Rectangular map viewport in WGS 84 degrees.

    Attributes:
        west: Minimum longitude.
        south: Minimum latitude.
        east: Maximum longitude.
        north: Maximum latitude.
    """

    west: float
    south: float
    east: float
    north: float

    def __post_init__(self) -> None:
        if self.south > self.north:
            msg = f"Viewport south {self.south} is greater than north {self.north}"
            raise ZoneValidationError(msg)
        if self.west > self.east:
            msg = f"Viewport west {self.west} is greater than east {self.east}"
            raise ZoneValidationError(msg)

    @classmethod
    def from_bbox(cls, bbox: BBox) -> ViewportBounds:
        """Build from a ``(min_lon, min_lat, max_lon, max_lat)`` tuple."""
        west, south, east, north = bbox
        return cls(west=west, south=south, east=east, north=north)

    def to_geometry(self) -> dict[str, Any]:
        """Return the viewport as a closed GeoJSON ``Polygon``."""
        ring = [
            [self.west, self.south],
            [self.east, self.south],
            [self.east, self.north],
            [self.west, self.north],
            [self.west, self.south],
        ]
        return {"type": "Polygon", "coordinates": [ring]}
