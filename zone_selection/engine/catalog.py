"""Zone Catalog: read-only id → Zone mapping for one host zone list.

Rebuilt whenever the host supplies a new zone list; never mutated by the
engine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from zone_selection.core.exceptions import ZoneValidationError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from zone_selection.models.zone import Zone


class ZoneCatalog:
    """Immutable lookup of the host's zones, preserving host order.

    Raises:
        ZoneValidationError: If two zones share an identifier.
    """

    def __init__(self, zones: Iterable[Zone]) -> None:
        by_id: dict[str, Zone] = {}
        for zone in zones:
            if zone.id in by_id:
                msg = f"Duplicate zone id in catalog: {zone.id!r}"
                raise ZoneValidationError(msg)
            by_id[zone.id] = zone
        self._by_id = by_id

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self) -> Iterator[Zone]:
        return iter(self._by_id.values())

    def __contains__(self, zone_id: object) -> bool:
        return zone_id in self._by_id

    def get(self, zone_id: str) -> Zone | None:
        return self._by_id.get(zone_id)

    @property
    def zones(self) -> list[Zone]:
        """All zones in host order."""
        return list(self._by_id.values())

    def resolve(self, ref: Zone | str) -> Zone | None:
        """Return the catalog zone for an id or a zone value.

        Zone values are looked up by id, so a stale copy resolves to the
        catalog's current record.  Unknown ids resolve to ``None``.
        """
        zone_id = ref if isinstance(ref, str) else ref.id
        return self._by_id.get(zone_id)

    def resolve_many(self, refs: Iterable[Zone | str]) -> list[Zone]:
        """Resolve refs in order, dropping unknown ids and duplicates."""
        resolved: dict[str, Zone] = {}
        for ref in refs:
            zone = self.resolve(ref)
            if zone is not None and zone.id not in resolved:
                resolved[zone.id] = zone
        return list(resolved.values())

    def zones_for(self, zone_ids: Iterable[str]) -> list[Zone]:
        """Zones for *zone_ids* in the given order, skipping unknown ids."""
        return [self._by_id[zone_id] for zone_id in zone_ids if zone_id in self._by_id]
