"""Tests for the selection store factory.

Covers: get_store, list_stores, register_store, store_from_config and
error handling for unknown or misconfigured backends.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest

from zone_selection.core.config import SelectionConfig
from zone_selection.core.exceptions import StoreError
from zone_selection.storage.blob import BlobSelectionStore
from zone_selection.storage.factory import (
    _STORE_REGISTRY,
    BLOB,
    FILE,
    MEMORY,
    get_store,
    list_stores,
    register_store,
    store_from_config,
)
from zone_selection.storage.file import JsonFileSelectionStore
from zone_selection.storage.memory import InMemorySelectionStore

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture()
def clean_registry() -> Iterator[None]:
    """Restore the registry after tests that register custom stores."""
    saved = dict(_STORE_REGISTRY)
    yield
    _STORE_REGISTRY.clear()
    _STORE_REGISTRY.update(saved)


class TestListStores:
    def test_includes_builtin_stores(self) -> None:
        stores = list_stores()
        assert {MEMORY, FILE, BLOB} <= set(stores)

    def test_returns_sorted(self) -> None:
        stores = list_stores()
        assert stores == sorted(stores)


class TestGetStore:
    def test_memory(self) -> None:
        store = get_store(MEMORY, initial={"k": ["a"]})
        assert isinstance(store, InMemorySelectionStore)
        assert store.get("k") == ["a"]

    def test_file(self, tmp_path: Path) -> None:
        store = get_store(FILE, directory=tmp_path)
        assert isinstance(store, JsonFileSelectionStore)
        assert store.directory == tmp_path

    def test_file_requires_directory(self) -> None:
        with pytest.raises(StoreError, match="directory") as exc_info:
            get_store(FILE)
        assert exc_info.value.code == "STORE_MISCONFIGURED"

    def test_blob_with_client(self) -> None:
        store = get_store(BLOB, blob_service_client=MagicMock(), container="zones")
        assert isinstance(store, BlobSelectionStore)
        assert store.container == "zones"

    def test_unknown_store(self) -> None:
        with pytest.raises(StoreError, match="Unknown selection store") as exc_info:
            get_store("carrier-pigeon")
        assert exc_info.value.code == "UNKNOWN_STORE"
        assert exc_info.value.retryable is False


class TestRegisterStore:
    def test_custom_store(self, clean_registry: None) -> None:
        custom = InMemorySelectionStore()
        register_store("custom", lambda **_options: custom)
        assert "custom" in list_stores()
        assert get_store("custom") is custom

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ValueError, match="non-empty"):
            register_store("", InMemorySelectionStore)


class TestStoreFromConfig:
    def test_memory_default(self) -> None:
        assert isinstance(store_from_config(SelectionConfig()), InMemorySelectionStore)

    def test_location_becomes_directory(self, tmp_path: Path) -> None:
        config = SelectionConfig(store_backend="file", store_location=str(tmp_path))
        store = store_from_config(config)
        assert isinstance(store, JsonFileSelectionStore)
        assert store.directory == tmp_path

    def test_location_becomes_container(self) -> None:
        config = SelectionConfig(store_backend="blob", store_location="my-container")
        store = store_from_config(config, blob_service_client=MagicMock())
        assert store.container == "my-container"
