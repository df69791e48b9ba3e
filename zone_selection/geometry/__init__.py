"""Geometry Oracle: polygon predicates and geodesic measurements."""

from zone_selection.geometry.oracle import GeometryOracle, ShapelyGeometryOracle

__all__ = ["GeometryOracle", "ShapelyGeometryOracle"]
