"""Pydantic record for a persisted selection.

This is the JSON document durable stores write for each persist key:
the ordered list of selected zone ids plus enough envelope to evolve the
format later.

Engineering standards:
- Idempotent and deterministic: the same selection produces the same
  ``zone_ids`` payload.
- Only identifiers are persisted; zone geometry always comes from the
  host's current zone list.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field, field_validator

# Schema version for forward compatibility
SCHEMA_VERSION = "zone-selection-v1"


class PersistedSelection(BaseModel):
    """Stored selection document.

    Attributes:
        schema_version: Record format identifier.
        key: Persist key the record was written under.
        zone_ids: Selected zone ids, first-selected first.
        saved_at: Write timestamp (ISO 8601, UTC).
    """

    schema_version: str = SCHEMA_VERSION
    key: str = ""
    zone_ids: list[str] = Field(default_factory=list)
    saved_at: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())

    @field_validator("zone_ids")
    @classmethod
    def _dedupe(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))
