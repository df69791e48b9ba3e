"""Zone Selection Engine.

Tracks which map zones (polygons) a host application has selected,
enforces selection constraints, records undo/redo history, persists the
selection order, and batches change notifications.
"""

__version__ = "0.1.0"
