"""Store factory: selects the persistent selection store by name.

The factory maintains a registry of known backends.  New backends are
registered with ``register_store``.

Usage::

    from zone_selection.storage.factory import get_store

    store = get_store("file", directory="/var/lib/zones")
    engine = SelectionEngine(zones, config=config, store=store)

The backend name is usually read from ``SelectionConfig.store_backend``
(``ZONE_SELECTION_STORE_BACKEND``).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from zone_selection.core.exceptions import StoreError

if TYPE_CHECKING:
    from collections.abc import Callable

    from zone_selection.core.config import SelectionConfig
    from zone_selection.storage.base import SelectionStore

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Backend name constants
# ---------------------------------------------------------------------------

MEMORY = "memory"
FILE = "file"
BLOB = "blob"

# ---------------------------------------------------------------------------
# Lazy-import backend registry
# ---------------------------------------------------------------------------

# Each entry maps a backend name to a callable returning a store built from
# keyword options, so azure-storage-blob is only imported when selected.

_STORE_REGISTRY: dict[str, Callable[..., SelectionStore]] = {}


def _register_builtin_stores() -> None:
    """Register the built-in store backends."""

    def _memory(**options: Any) -> SelectionStore:
        from zone_selection.storage.memory import InMemorySelectionStore

        return InMemorySelectionStore(options.get("initial"))

    def _file(**options: Any) -> SelectionStore:
        from zone_selection.storage.file import JsonFileSelectionStore

        directory = options.get("directory") or options.get("location")
        if not directory:
            msg = "The file store requires a 'directory' option"
            raise StoreError(msg, code="STORE_MISCONFIGURED", retryable=False)
        return JsonFileSelectionStore(directory)

    def _blob(**options: Any) -> SelectionStore:
        from zone_selection.storage.blob import BlobSelectionStore

        container = options.get("container") or options.get("location") or ""
        client = options.get("blob_service_client")
        if client is None:
            if container:
                return BlobSelectionStore.from_env(container)
            return BlobSelectionStore.from_env()
        if container:
            return BlobSelectionStore(client, container)
        return BlobSelectionStore(client)

    _STORE_REGISTRY[MEMORY] = _memory
    _STORE_REGISTRY[FILE] = _file
    _STORE_REGISTRY[BLOB] = _blob


def _ensure_registry() -> None:
    """Initialise the backend registry once (idempotent)."""
    if not _STORE_REGISTRY:
        _register_builtin_stores()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def register_store(name: str, loader: Callable[..., SelectionStore]) -> None:
    """Register a custom store backend.

    Args:
        name: Backend name (e.g. ``"redis"``).
        loader: Callable accepting keyword options and returning a store.

    Raises:
        ValueError: If the name is empty.
    """
    if not name:
        msg = "Store name must be non-empty"
        raise ValueError(msg)
    _ensure_registry()
    _STORE_REGISTRY[name] = loader
    logger.debug("Registered selection store: %s", name)


def get_store(name: str, **options: Any) -> SelectionStore:
    """Create and return a selection store.

    Raises:
        StoreError: If the named backend is not registered or is
            misconfigured.
    """
    _ensure_registry()

    loader = _STORE_REGISTRY.get(name)
    if loader is None:
        available = ", ".join(sorted(_STORE_REGISTRY))
        msg = f"Unknown selection store: {name!r}. Available: {available}"
        raise StoreError(msg, code="UNKNOWN_STORE", retryable=False)

    logger.info("Creating selection store: %s", name)
    return loader(**options)


def store_from_config(config: SelectionConfig, **options: Any) -> SelectionStore:
    """Create the store named by ``config.store_backend``.

    ``config.store_location`` is passed as the ``location`` option.
    """
    if config.store_location:
        options.setdefault("location", config.store_location)
    return get_store(config.store_backend, **options)


def list_stores() -> list[str]:
    """Return the names of all registered store backends."""
    _ensure_registry()
    return sorted(_STORE_REGISTRY)
