"""Tests for zone, selection and persisted-selection models.

Covers:
- Zone validation and GeoJSON Feature round-trip
- ViewportBounds validation and polygon conversion
- SelectionState invariants, construction helpers and clone isolation
- SelectionConstraints helpers
- PersistedSelection (pydantic) parsing
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from zone_selection.core.exceptions import InvariantError, ZoneValidationError
from zone_selection.models.persisted import SCHEMA_VERSION, PersistedSelection
from zone_selection.models.selection import (
    SelectionConstraints,
    SelectionMode,
    SelectionState,
    ValidationResult,
)
from zone_selection.models.zone import ViewportBounds, Zone

POLYGON = {"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [1, 1], [0, 1], [0, 0]]]}


# ---------------------------------------------------------------------------
# Zone
# ---------------------------------------------------------------------------


class TestZone:
    def test_empty_id_rejected(self) -> None:
        with pytest.raises(ZoneValidationError, match="non-empty"):
            Zone(id="", geometry=POLYGON)

    def test_non_polygon_rejected(self) -> None:
        with pytest.raises(ZoneValidationError, match="Point"):
            Zone(id="z", geometry={"type": "Point", "coordinates": [0, 0]})

    def test_missing_geometry_rejected(self) -> None:
        with pytest.raises(ZoneValidationError):
            Zone(id="z")

    @pytest.mark.parametrize(
        ("properties", "expected"),
        [({"area": 12.5}, 12.5), ({"area": 3}, 3.0), ({"area": "big"}, None), ({"area": True}, None), ({}, None)],
    )
    def test_cached_area(self, properties: dict[str, object], expected: float | None) -> None:
        assert Zone(id="z", geometry=POLYGON, properties=properties).cached_area == expected

    def test_from_feature(self) -> None:
        feature = {
            "type": "Feature",
            "id": "parcel-7",
            "geometry": POLYGON,
            "properties": {"name": "Parcel 7", "crop": "olive"},
            "bbox": [0, 0, 1, 1],
        }
        zone = Zone.from_dict(feature)
        assert zone.id == "parcel-7"
        assert zone.name == "Parcel 7"
        assert zone.properties == {"crop": "olive"}
        assert zone.bbox == (0.0, 0.0, 1.0, 1.0)

    def test_id_from_properties(self) -> None:
        zone = Zone.from_dict({"geometry": POLYGON, "properties": {"id": "p-1"}})
        assert zone.id == "p-1"
        assert "id" not in zone.properties

    def test_to_dict_round_trip(self) -> None:
        zone = Zone(id="a", name="Alpha", geometry=POLYGON, properties={"k": 1}, bbox=(0, 0, 1, 1))
        assert Zone.from_dict(zone.to_dict()) == zone

    def test_bad_bbox_rejected(self) -> None:
        with pytest.raises(TypeError, match="bbox"):
            Zone.from_dict({"id": "a", "geometry": POLYGON, "bbox": [0, 0]})

    def test_feature_without_id_rejected(self) -> None:
        with pytest.raises(ZoneValidationError):
            Zone.from_dict({"geometry": POLYGON, "properties": {}})

    def test_hashable_by_id(self) -> None:
        first = Zone(id="a", geometry=POLYGON, properties={"k": 1})
        same = Zone(id="a", geometry=POLYGON, properties={"k": 1})
        other = Zone(id="b", geometry=POLYGON)
        assert hash(first) == hash(same)
        assert {first, same, other} == {first, other}


class TestViewportBounds:
    def test_inverted_latitudes_rejected(self) -> None:
        with pytest.raises(ZoneValidationError, match="south"):
            ViewportBounds(west=0, south=2, east=1, north=1)

    def test_inverted_longitudes_rejected(self) -> None:
        with pytest.raises(ZoneValidationError, match="west"):
            ViewportBounds(west=5, south=0, east=1, north=1)

    def test_to_geometry_is_closed_polygon(self) -> None:
        geom = ViewportBounds.from_bbox((1.0, 2.0, 3.0, 4.0)).to_geometry()
        ring = geom["coordinates"][0]
        assert geom["type"] == "Polygon"
        assert ring[0] == ring[-1] == [1.0, 2.0]
        assert [3.0, 4.0] in ring


# ---------------------------------------------------------------------------
# Selection state
# ---------------------------------------------------------------------------


class TestSelectionState:
    def test_from_ids_dedupes_and_sets_last(self) -> None:
        state = SelectionState.from_ids(["a", "b", "a", "c"])
        assert state.selection_order == ["a", "b", "c"]
        assert state.selected_ids == {"a", "b", "c"}
        assert state.last_selected_id == "c"
        assert state.mode is SelectionMode.MULTIPLE

    def test_empty(self) -> None:
        state = SelectionState()
        assert len(state) == 0
        assert state.last_selected_id is None

    def test_duplicate_order_rejected(self) -> None:
        with pytest.raises(InvariantError, match="duplicates"):
            SelectionState(selected_ids={"a"}, selection_order=["a", "a"])

    def test_set_order_mismatch_rejected(self) -> None:
        with pytest.raises(InvariantError, match="do not match"):
            SelectionState(selected_ids={"a", "b"}, selection_order=["a"])

    def test_clone_shares_nothing_mutable(self) -> None:
        constraints = SelectionConstraints(allowed_properties={"crop": "wheat"})
        state = SelectionState.from_ids(["a"], constraints=constraints)
        clone = state.clone()
        clone.selection_order.append("b")
        clone.selected_ids.add("b")
        clone.constraints.allowed_properties["crop"] = "rye"
        assert state.selection_order == ["a"]
        assert state.selected_ids == {"a"}
        assert state.constraints.allowed_properties == {"crop": "wheat"}


class TestSelectionConstraints:
    def test_with_max_selections_none_returns_self(self) -> None:
        constraints = SelectionConstraints(min_selections=1)
        assert constraints.with_max_selections(None) is constraints

    def test_with_max_selections_overrides(self) -> None:
        constraints = SelectionConstraints(max_selections=9, min_area=1.0)
        updated = constraints.with_max_selections(3)
        assert updated.max_selections == 3
        assert updated.min_area == 1.0
        assert constraints.max_selections == 9

    def test_validation_result_ok(self) -> None:
        result = ValidationResult.ok(["heads up"])
        assert result.valid
        assert result.errors == []
        assert result.warnings == ["heads up"]


# ---------------------------------------------------------------------------
# PersistedSelection
# ---------------------------------------------------------------------------


class TestPersistedSelection:
    def test_defaults(self) -> None:
        record = PersistedSelection(key="k", zone_ids=["a"])
        assert record.schema_version == SCHEMA_VERSION
        assert record.saved_at.endswith("+00:00")

    def test_zone_ids_deduped(self) -> None:
        assert PersistedSelection(zone_ids=["a", "b", "a"]).zone_ids == ["a", "b"]

    def test_json_round_trip(self) -> None:
        record = PersistedSelection(key="map", zone_ids=["z2", "z1"])
        parsed = PersistedSelection.model_validate_json(record.model_dump_json())
        assert parsed == record

    def test_invalid_payload_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            PersistedSelection.model_validate_json('{"zone_ids": "not-a-list"}')
