"""JSON-file selection store.

Writes one ``PersistedSelection`` document per key into a directory.
Writes go to a temporary file first and are renamed into place so a
crash never leaves a half-written document behind.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from zone_selection.core.exceptions import StoreError
from zone_selection.models.persisted import PersistedSelection
from zone_selection.storage.base import SelectionStore

logger = logging.getLogger("zone_selection.storage.file")

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class JsonFileSelectionStore(SelectionStore):
    """Directory of ``<key>.json`` selection documents.

    Args:
        directory: Target directory; created on first write.
    """

    def __init__(self, directory: str | Path) -> None:
        super().__init__()
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        """Return the document path for *key* (unsafe characters replaced)."""
        return self._directory / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def _read(self, key: str) -> list[str] | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            record = PersistedSelection.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, PydanticValidationError) as exc:
            msg = f"Cannot read selection document {path}: {exc}"
            raise StoreError(msg) from exc
        return record.zone_ids

    def _write(self, key: str, ids: list[str]) -> None:
        path = self.path_for(key)
        record = PersistedSelection(key=key, zone_ids=ids)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(record.model_dump_json(), encoding="utf-8")
            tmp_path.replace(path)
        except OSError as exc:
            msg = f"Cannot write selection document {path}: {exc}"
            raise StoreError(msg) from exc
        logger.debug("Selection written | path=%s | count=%d", path, len(ids))
