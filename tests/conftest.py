"""Shared pytest fixtures for the zone selection test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from zone_selection.models.zone import Zone

if TYPE_CHECKING:
    from collections.abc import Callable

# ---------------------------------------------------------------------------
# Geometry helpers
# ---------------------------------------------------------------------------

#: Side length of the fixture squares in degrees (~1.1 km at the equator).
CELL_DEG = 0.01


def square(min_lon: float, min_lat: float, size: float = CELL_DEG) -> dict[str, Any]:
    """Closed GeoJSON Polygon for an axis-aligned square."""
    # Rounded so neighbouring cells share bit-identical edge coordinates
    max_lon = round(min_lon + size, 9)
    max_lat = round(min_lat + size, 9)
    ring = [
        [min_lon, min_lat],
        [max_lon, min_lat],
        [max_lon, max_lat],
        [min_lon, max_lat],
        [min_lon, min_lat],
    ]
    return {"type": "Polygon", "coordinates": [ring]}


def make_zone(zone_id: str, min_lon: float = 0.0, min_lat: float = 0.0, **properties: Any) -> Zone:
    """Build a square zone named after its id."""
    return Zone(
        id=zone_id,
        name=zone_id.replace("-", " ").title(),
        geometry=square(min_lon, min_lat),
        properties=properties,
    )


# ---------------------------------------------------------------------------
# Zone fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def zone_factory() -> Callable[..., Zone]:
    """Return ``make_zone`` for tests that need custom zones."""
    return make_zone


@pytest.fixture()
def zones() -> list[Zone]:
    """Five edge-adjacent squares in a row along the equator.

    ``zone-1`` spans lon 0.00-0.01, ``zone-2`` lon 0.01-0.02 and so on,
    so consecutive zones share an edge and non-consecutive ones do not.
    """
    return [make_zone(f"zone-{i}", min_lon=round((i - 1) * CELL_DEG, 9)) for i in range(1, 6)]


@pytest.fixture()
def zone_map(zones: list[Zone]) -> dict[str, Zone]:
    return {zone.id: zone for zone in zones}


@pytest.fixture()
def area_zones() -> list[Zone]:
    """Three zones carrying precomputed ``area`` properties (m²)."""
    return [
        make_zone("field-a", min_lon=0.0, area=5_000.0, crop="wheat"),
        make_zone("field-b", min_lon=0.02, area=20_000.0, crop="wheat"),
        make_zone("field-c", min_lon=0.04, area=2_000_000.0, crop="barley"),
    ]


# ---------------------------------------------------------------------------
# Debounce timer fixture
# ---------------------------------------------------------------------------


class FakeTimer:
    """Manually-fired stand-in for ``threading.Timer``."""

    def __init__(self, delay_s: float, callback: Callable[[], None]) -> None:
        self.delay_s = delay_s
        self.callback = callback
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        """Invoke the callback as the timer thread would (even if cancelled)."""
        self.callback()


class FakeTimerFactory:
    """Timer factory recording every timer it creates."""

    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def __call__(self, delay_s: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay_s, callback)
        self.timers.append(timer)
        return timer

    @property
    def latest(self) -> FakeTimer:
        return self.timers[-1]

    @property
    def active(self) -> list[FakeTimer]:
        return [timer for timer in self.timers if timer.started and not timer.cancelled]


@pytest.fixture()
def fake_timers() -> FakeTimerFactory:
    return FakeTimerFactory()
