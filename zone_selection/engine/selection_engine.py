"""Selection Engine: orchestrates catalog, reducer, validator and history.

The engine owns the single live ``SelectionState`` value.  Every mutating
operation follows the same commit cycle:

1. Resolve zone references against the Zone Catalog (unknown ids are
   dropped, never errored).
2. Compute the candidate state with the pure reducer.  An identical
   state means the call was a no-op and nothing else happens.
3. Validate the candidate selection (additive operations only, unless
   ``skip_validation`` is given).  A rejection is reported through
   ``on_selection_error`` and leaves the state untouched.
4. Commit: record the state in history (unless replaying an undo/redo),
   persist the selection order, then deliver or batch the change event.

State changes are always applied immediately.  With batching active
(``batch_updates`` and ``debounce_ms > 0``) only the notification is
deferred, so ``selected_zones`` and ``is_zone_selected`` reflect each call
at once while ``on_selection_change`` fires once per debounce window.

Usage::

    config = SelectionConfig(max_selections=3, persist_key="map-1")
    with SelectionEngine(zones, config=config, on_selection_change=render) as engine:
        engine.select_zone("zone-1", source=SelectionSource.CLICK)
        engine.undo()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from zone_selection.core.config import SelectionConfig
from zone_selection.core.constants import ENGINE_CLOSED
from zone_selection.core.exceptions import InvariantError, StoreError
from zone_selection.engine.batching import NotificationBatcher
from zone_selection.engine.catalog import ZoneCatalog
from zone_selection.engine.history import SelectionHistory
from zone_selection.engine.metrics import compute_selection_metrics
from zone_selection.engine.reducer import (
    ClearSelection,
    DeselectMultiple,
    DeselectZone,
    RestoreState,
    SelectMultiple,
    SelectZone,
    SetMode,
    reduce_selection,
)
from zone_selection.engine.validation import SelectionValidationError, validate_constraints
from zone_selection.geometry.measure import safe_predicate, zone_centroid
from zone_selection.models.selection import (
    SelectionChangeEvent,
    SelectionConstraints,
    SelectionMode,
    SelectionSource,
    SelectionState,
)
from zone_selection.models.zone import ViewportBounds

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence
    from types import TracebackType

    from zone_selection.engine.batching import TimerHandle
    from zone_selection.engine.reducer import SelectionAction
    from zone_selection.geometry.oracle import GeometryOracle
    from zone_selection.models.selection import SelectionMetrics, ValidationResult
    from zone_selection.models.zone import BBox, Zone
    from zone_selection.storage.base import SelectionStore

    ZoneRef = Zone | str

logger = logging.getLogger("zone_selection.engine.selection_engine")


class SelectionEngine:
    """Zone selection state machine with constraints, undo/redo and batching.

    Args:
        zones: The host's current zone list (becomes the Zone Catalog).
        config: Scalar options; defaults to ``SelectionConfig()``.
        initial_selection: Zone ids selected at start-up.  Unknown ids are
            dropped.  When empty, the persisted selection is loaded instead.
        constraints: Active selection constraints.
        oracle: Geometry Oracle; a ``ShapelyGeometryOracle`` is created on
            first use when omitted.
        store: Persistent selection store.  When ``config.persist_key`` is
            set and no store is given, one is built from the config.
        on_selection_change: Receives each ``SelectionChangeEvent``.
        on_selection_error: Receives each ``SelectionValidationError``.
        on_hover_change: Receives the newly hovered zone (or ``None``).
        timer_factory: Debounce timer factory, for hosts with their own
            event loop and for tests.

    Raises:
        ConfigValidationError: If *config* is out of range.
        ZoneValidationError: If two zones share an identifier.
    """

    def __init__(
        self,
        zones: Iterable[Zone],
        *,
        config: SelectionConfig | None = None,
        initial_selection: Sequence[str] = (),
        constraints: SelectionConstraints | None = None,
        oracle: GeometryOracle | None = None,
        store: SelectionStore | None = None,
        on_selection_change: Callable[[SelectionChangeEvent], None] | None = None,
        on_selection_error: Callable[[SelectionValidationError], None] | None = None,
        on_hover_change: Callable[[Zone | None], None] | None = None,
        timer_factory: Callable[[float, Callable[[], None]], TimerHandle] | None = None,
    ) -> None:
        self._config = (config or SelectionConfig()).validate()
        self._catalog = ZoneCatalog(zones)
        self._oracle = oracle
        self._on_selection_change = on_selection_change
        self._on_selection_error = on_selection_error
        self._on_hover_change = on_hover_change

        self._store = store
        if self._config.persist_key and self._store is None:
            from zone_selection.storage.factory import store_from_config

            self._store = store_from_config(self._config)

        mode = SelectionMode(self._config.mode)
        self._state = SelectionState.from_ids(
            self._initial_ids(initial_selection, mode),
            mode=mode,
            constraints=_active_constraints(constraints, self._config.max_selections),
        )

        self._history: SelectionHistory | None = None
        if self._config.enable_history:
            self._history = SelectionHistory(self._config.max_history_size)
            self._history.push(self._state)
        self._replaying = False

        self._batcher: NotificationBatcher | None = None
        if self._config.batching_active:
            self._batcher = NotificationBatcher(self._config.debounce_ms, self._deliver, timer_factory)

        self._hovered_id: str | None = None
        self._closed = False

        logger.info(
            "Selection engine created | zones=%d | selected=%d | mode=%s | history=%s | debounce_ms=%d",
            len(self._catalog),
            len(self._state),
            mode.value,
            self._config.enable_history,
            self._config.debounce_ms if self._batcher else 0,
        )

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def config(self) -> SelectionConfig:
        return self._config

    @property
    def zones(self) -> list[Zone]:
        """The catalog's zones in host order."""
        return self._catalog.zones

    @property
    def selected_zones(self) -> list[Zone]:
        """Selected zones in selection order (vanished zones are skipped)."""
        return self._catalog.zones_for(self._state.selection_order)

    @property
    def selected_ids(self) -> set[str]:
        return set(self._state.selected_ids)

    @property
    def selection_mode(self) -> SelectionMode:
        return self._state.mode

    @property
    def constraints(self) -> SelectionConstraints | None:
        return self._state.constraints

    @property
    def state(self) -> SelectionState:
        """A clone of the live state; mutating it has no effect on the engine."""
        return self._state.clone()

    @property
    def can_undo(self) -> bool:
        return self._history is not None and self._history.can_undo()

    @property
    def can_redo(self) -> bool:
        return self._history is not None and self._history.can_redo()

    @property
    def history_size(self) -> int:
        return self._history.size() if self._history is not None else 0

    @property
    def hovered_zone(self) -> Zone | None:
        if self._hovered_id is None:
            return None
        return self._catalog.get(self._hovered_id)

    @property
    def pending_notifications(self) -> int:
        """Change events waiting for the debounce window to close."""
        return self._batcher.pending_count if self._batcher is not None else 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def oracle(self) -> GeometryOracle:
        if self._oracle is None:
            from zone_selection.geometry.oracle import ShapelyGeometryOracle

            self._oracle = ShapelyGeometryOracle()
        return self._oracle

    def is_zone_selected(self, zone_id: str) -> bool:
        return zone_id in self._state.selected_ids

    # ------------------------------------------------------------------
    # Selection operations
    # ------------------------------------------------------------------

    def select_zone(
        self,
        ref: ZoneRef,
        *,
        source: SelectionSource = SelectionSource.API,
        silent: bool = False,
        skip_validation: bool = False,
    ) -> bool:
        """Select one zone (replacing the selection in single mode).

        Returns:
            ``True`` when the selection changed.
        """
        self._ensure_open()
        zone = self._catalog.resolve(ref)
        if zone is None:
            logger.debug("Select ignored, unknown zone | zone=%s", _ref_id(ref))
            return False
        return self._dispatch(
            SelectZone(zone),
            source=source,
            silent=silent,
            validate=not skip_validation,
            error_zone=zone,
        )

    def deselect_zone(
        self,
        ref: ZoneRef,
        *,
        source: SelectionSource = SelectionSource.API,
        silent: bool = False,
    ) -> bool:
        """Deselect one zone.  Ids no longer in the catalog may be deselected."""
        return self._dispatch(DeselectZone(_ref_id(ref)), source=source, silent=silent)

    def toggle_zone(
        self,
        ref: ZoneRef,
        *,
        source: SelectionSource = SelectionSource.API,
        silent: bool = False,
        skip_validation: bool = False,
    ) -> bool:
        self._ensure_open()
        if self.is_zone_selected(_ref_id(ref)):
            return self.deselect_zone(ref, source=source, silent=silent)
        return self.select_zone(ref, source=source, silent=silent, skip_validation=skip_validation)

    def select_multiple(
        self,
        refs: Iterable[ZoneRef],
        *,
        source: SelectionSource = SelectionSource.API,
        silent: bool = False,
        skip_validation: bool = False,
    ) -> bool:
        """Select several zones at once.

        Validation is all-or-nothing: if the combined selection violates
        a constraint, none of the zones are selected.
        """
        self._ensure_open()
        zones = self._catalog.resolve_many(refs)
        if not zones:
            return False
        return self._dispatch(
            SelectMultiple(zones),
            source=source,
            silent=silent,
            validate=not skip_validation,
            error_zones=zones,
        )

    def deselect_multiple(
        self,
        refs: Iterable[ZoneRef],
        *,
        source: SelectionSource = SelectionSource.API,
        silent: bool = False,
    ) -> bool:
        return self._dispatch(
            DeselectMultiple([_ref_id(ref) for ref in refs]),
            source=source,
            silent=silent,
        )

    def clear_selection(
        self,
        *,
        source: SelectionSource = SelectionSource.API,
        silent: bool = False,
    ) -> bool:
        return self._dispatch(ClearSelection(), source=source, silent=silent)

    def select_all(
        self,
        refs: Iterable[ZoneRef] | None = None,
        *,
        source: SelectionSource = SelectionSource.API,
        silent: bool = False,
        skip_validation: bool = False,
    ) -> bool:
        """Select every catalog zone, or every zone in *refs*."""
        self._ensure_open()
        zones = self._catalog.zones if refs is None else self._catalog.resolve_many(refs)
        new_zones = [zone for zone in zones if zone.id not in self._state.selected_ids]
        if not new_zones:
            return False
        return self._dispatch(
            SelectMultiple(zones),
            source=source,
            silent=silent,
            validate=not skip_validation,
            error_zones=new_zones,
        )

    def select_by_predicate(
        self,
        predicate: Callable[[Zone], bool],
        *,
        source: SelectionSource = SelectionSource.API,
        silent: bool = False,
        skip_validation: bool = False,
    ) -> bool:
        """Select every catalog zone for which *predicate* is true."""
        self._ensure_open()
        matches = [zone for zone in self._catalog if predicate(zone)]
        return self.select_multiple(matches, source=source, silent=silent, skip_validation=skip_validation)

    def select_adjacent(
        self,
        ref: ZoneRef,
        tolerance_m: float = 0.0,
        *,
        source: SelectionSource = SelectionSource.API,
        silent: bool = False,
        skip_validation: bool = False,
    ) -> bool:
        """Select the zones touching or overlapping *ref*.

        The reference zone itself is not selected.  With a positive
        *tolerance_m* the reference geometry is buffered first, so zones
        separated by a gap narrower than the tolerance count as adjacent.
        Pairs the oracle cannot evaluate count as not adjacent.
        """
        self._ensure_open()
        zone = self._catalog.resolve(ref)
        if zone is None:
            return False

        oracle = self.oracle
        reference = zone.geometry
        if tolerance_m > 0:
            try:
                reference = oracle.buffer(zone.geometry, tolerance_m)
            except Exception as exc:
                logger.warning(
                    "Buffer failed, using exact geometry | zone=%s | tolerance_m=%s | error=%s",
                    zone.id,
                    tolerance_m,
                    exc,
                )

        adjacent = [
            other
            for other in self._catalog
            if other.id != zone.id
            and safe_predicate(
                lambda other=other: oracle.overlaps(reference, other.geometry)
                or oracle.intersects(reference, other.geometry),
                f"adjacency {zone.id}/{other.id}",
            )
        ]
        logger.debug("Adjacent zones found | zone=%s | count=%d", zone.id, len(adjacent))
        return self.select_multiple(adjacent, source=source, silent=silent, skip_validation=skip_validation)

    def select_within_bounds(
        self,
        bounds: ViewportBounds | BBox,
        *,
        source: SelectionSource = SelectionSource.API,
        silent: bool = False,
        skip_validation: bool = False,
    ) -> bool:
        """Select the zones whose centroid lies inside *bounds*."""
        self._ensure_open()
        if not isinstance(bounds, ViewportBounds):
            bounds = ViewportBounds.from_bbox(bounds)
        polygon = bounds.to_geometry()
        oracle = self.oracle

        inside = []
        for zone in self._catalog:
            centroid = zone_centroid(zone, oracle)
            if centroid is None:
                continue
            if safe_predicate(
                lambda centroid=centroid: oracle.point_in_polygon(centroid, polygon),
                f"point-in-bounds {zone.id}",
            ):
                inside.append(zone)
        return self.select_multiple(inside, source=source, silent=silent, skip_validation=skip_validation)

    def set_mode(
        self,
        mode: SelectionMode | str,
        *,
        source: SelectionSource = SelectionSource.API,
    ) -> bool:
        """Change the selection mode.

        The current selection is not reshaped; clear it first if a
        multi-zone selection must not survive a switch to single mode.
        """
        return self._dispatch(SetMode(SelectionMode(mode)), source=source)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def undo(self, *, source: SelectionSource = SelectionSource.API, silent: bool = False) -> bool:
        """Restore the previous recorded state.  Returns ``False`` if none."""
        self._ensure_open()
        if self._history is None or not self._history.can_undo():
            return False
        previous = self._history.undo()
        logger.info("Undo | cursor=%d | selected=%d", self._history.cursor, len(previous))
        return self._replay(previous, source=source, silent=silent)

    def redo(self, *, source: SelectionSource = SelectionSource.API, silent: bool = False) -> bool:
        """Re-apply the next recorded state.  Returns ``False`` if none."""
        self._ensure_open()
        if self._history is None or not self._history.can_redo():
            return False
        following = self._history.redo()
        logger.info("Redo | cursor=%d | selected=%d", self._history.cursor, len(following))
        return self._replay(following, source=source, silent=silent)

    # ------------------------------------------------------------------
    # Hover, catalog and utilities
    # ------------------------------------------------------------------

    def set_hovered_zone(self, ref: ZoneRef | None) -> bool:
        """Track the zone under the pointer.  Hover is not recorded in history.

        Returns:
            ``True`` when the hovered zone changed.
        """
        self._ensure_open()
        if ref is None:
            zone_id = None
        else:
            zone = self._catalog.resolve(ref)
            if zone is None:
                return False
            zone_id = zone.id

        if zone_id == self._hovered_id:
            return False
        self._hovered_id = zone_id
        if self._on_hover_change is not None:
            self._on_hover_change(self.hovered_zone)
        return True

    def update_zones(self, zones: Iterable[Zone]) -> None:
        """Replace the Zone Catalog with the host's new zone list.

        Selected ids whose zones vanished stay in the state but are not
        returned by ``selected_zones``.  A vanished hovered zone is cleared.
        """
        self._ensure_open()
        self._catalog = ZoneCatalog(zones)
        missing = [zone_id for zone_id in self._state.selection_order if zone_id not in self._catalog]
        if missing:
            logger.debug("Selected zones missing from new catalog | ids=%s", missing)
        if self._hovered_id is not None and self._hovered_id not in self._catalog:
            self.set_hovered_zone(None)

    def get_selection_metrics(self) -> SelectionMetrics:
        """Measure the current selection (recomputed on every call)."""
        return compute_selection_metrics(self.selected_zones, self.oracle)

    def validate_selection(self, refs: Iterable[ZoneRef] | None = None) -> ValidationResult:
        """Validate *refs* (default: the current selection) against the active constraints."""
        zones = self.selected_zones if refs is None else self._catalog.resolve_many(refs)
        return self._validate(zones)

    def export_selection(self) -> list[str]:
        """The selected ids in selection order."""
        return list(self._state.selection_order)

    def load_selection(
        self,
        zone_ids: Iterable[str],
        *,
        source: SelectionSource = SelectionSource.API,
        silent: bool = False,
    ) -> bool:
        """Replace the selection with *zone_ids* (no validation).

        Unknown ids are dropped.  In single mode only the last id is kept.
        """
        self._ensure_open()
        ids = list(dict.fromkeys(zone_ids))
        valid = [zone_id for zone_id in ids if zone_id in self._catalog]
        if len(valid) != len(ids):
            logger.warning(
                "Unknown zone ids dropped from load | dropped=%s",
                [zone_id for zone_id in ids if zone_id not in self._catalog],
            )
        if self._state.mode is SelectionMode.SINGLE:
            valid = valid[-1:]
        if valid == self._state.selection_order:
            return False

        loaded = SelectionState.from_ids(valid, mode=self._state.mode, constraints=self._state.constraints)
        return self._dispatch(RestoreState(loaded), source=source, silent=silent)

    def reset_selection(
        self,
        *,
        source: SelectionSource = SelectionSource.API,
        silent: bool = False,
    ) -> bool:
        """Clear the selection and the hovered zone."""
        changed = self.clear_selection(source=source, silent=silent)
        self.set_hovered_zone(None)
        return changed

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def flush(self) -> SelectionChangeEvent | None:
        """Deliver any pending batched notification now."""
        if self._batcher is None:
            return None
        return self._batcher.flush()

    def close(self) -> None:
        """Tear the engine down: cancel the debounce timer and drop pending events."""
        if self._closed:
            return
        if self._batcher is not None:
            self._batcher.close()
        self._closed = True
        logger.info("Selection engine closed | selected=%d", len(self._state))

    def __enter__(self) -> SelectionEngine:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Commit cycle
    # ------------------------------------------------------------------

    def _dispatch(
        self,
        action: SelectionAction,
        *,
        source: SelectionSource,
        silent: bool = False,
        validate: bool = False,
        error_zone: Zone | None = None,
        error_zones: Sequence[Zone] | None = None,
    ) -> bool:
        self._ensure_open()
        candidate = reduce_selection(self._state, action)
        if candidate is self._state:
            return False

        if validate:
            result = self._validate(
                self._catalog.zones_for(candidate.selection_order),
                selection_count=len(candidate.selection_order),
            )
            if not result.valid:
                self._report_error(
                    SelectionValidationError(
                        result.errors,
                        zone=error_zone,
                        zones=error_zones,
                        warnings=result.warnings,
                    )
                )
                return False

        self._commit(candidate, action=type(action).__name__, source=source, silent=silent)
        return True

    def _replay(self, state: SelectionState, *, source: SelectionSource, silent: bool) -> bool:
        self._replaying = True
        return self._dispatch(RestoreState(state), source=source, silent=silent)

    def _commit(self, state: SelectionState, *, action: str, source: SelectionSource, silent: bool) -> None:
        replaying, self._replaying = self._replaying, False
        previous = self._state
        self._state = state

        if self._history is not None and not replaying:
            self._history.push(state)

        logger.debug(
            "Transition committed | action=%s | selected=%d | replay=%s",
            action,
            len(state),
            replaying,
        )

        if previous.selection_order == state.selection_order:
            return

        self._persist(state.selection_order)
        if silent:
            return

        previous_ids = previous.selected_ids
        event = SelectionChangeEvent(
            added=self._catalog.zones_for(i for i in state.selection_order if i not in previous_ids),
            removed=self._catalog.zones_for(i for i in previous.selection_order if i not in state.selected_ids),
            current=self.selected_zones,
            source=source,
        )
        if self._batcher is not None:
            self._batcher.enqueue(event)
        else:
            self._deliver(event)

    def _deliver(self, event: SelectionChangeEvent) -> None:
        if self._on_selection_change is not None:
            self._on_selection_change(event)

    def _validate(self, zones: Sequence[Zone], *, selection_count: int | None = None) -> ValidationResult:
        constraints = self._state.constraints
        if constraints is None:
            return validate_constraints(zones, None)
        return validate_constraints(zones, constraints, self.oracle, selection_count=selection_count)

    def _report_error(self, error: SelectionValidationError) -> None:
        if self._on_selection_error is not None:
            self._on_selection_error(error)
            return
        logger.warning("Selection rejected | code=%s | errors=%s", error.code, error.message)

    def _persist(self, order: list[str]) -> None:
        if not self._config.persist_key or self._store is None:
            return
        try:
            self._store.set(self._config.persist_key, order)
        except StoreError as exc:
            logger.warning(
                "Selection not persisted | key=%s | code=%s | error=%s",
                self._config.persist_key,
                exc.code,
                exc.message,
            )

    def _initial_ids(self, initial_selection: Sequence[str], mode: SelectionMode) -> list[str]:
        ids = [zone_id for zone_id in dict.fromkeys(initial_selection) if zone_id in self._catalog]
        if not ids and self._config.persist_key and self._store is not None:
            try:
                stored = self._store.get(self._config.persist_key)
            except StoreError as exc:
                logger.warning(
                    "Persisted selection unavailable | key=%s | code=%s | error=%s",
                    self._config.persist_key,
                    exc.code,
                    exc.message,
                )
                stored = []
            ids = [zone_id for zone_id in dict.fromkeys(stored) if zone_id in self._catalog]
            if ids:
                logger.info(
                    "Selection loaded from store | key=%s | selected=%d",
                    self._config.persist_key,
                    len(ids),
                )
        if mode is SelectionMode.SINGLE:
            ids = ids[-1:]
        return ids

    def _ensure_open(self) -> None:
        if self._closed:
            msg = "Selection engine is closed"
            raise InvariantError(msg, stage="engine", code=ENGINE_CLOSED)


def _ref_id(ref: ZoneRef) -> str:
    return ref if isinstance(ref, str) else ref.id


def _active_constraints(
    constraints: SelectionConstraints | None,
    max_selections: int | None,
) -> SelectionConstraints | None:
    """Apply the configured ``max_selections`` on top of *constraints*."""
    if constraints is None:
        if max_selections is None:
            return None
        return SelectionConstraints(max_selections=max_selections)
    return constraints.with_max_selections(max_selections)
