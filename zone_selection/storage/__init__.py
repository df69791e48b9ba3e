"""Persistent key-value stores for the selected zone id list."""

from zone_selection.storage.base import SelectionStore
from zone_selection.storage.factory import get_store, list_stores, register_store

__all__ = ["SelectionStore", "get_store", "list_stores", "register_store"]
