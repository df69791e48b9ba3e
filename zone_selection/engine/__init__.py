"""Selection Engine and its components.

- catalog: Zone Catalog (id → Zone lookup)
- reducer: Pure (state, action) → state transitions
- history: Bounded undo/redo snapshot stack
- validation: Constraint Validator
- batching: Debounced notification batcher
- metrics: Selection measurements
- selection_engine: Orchestrator exposing the public operation surface
"""

from zone_selection.engine.selection_engine import SelectionEngine

__all__ = ["SelectionEngine"]
