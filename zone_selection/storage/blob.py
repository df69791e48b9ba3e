"""Azure Blob Storage selection store.

Stores one ``PersistedSelection`` JSON document per key under
``selections/<key>.json`` in a single container, so a selection follows
the user across machines.
"""

from __future__ import annotations

import contextlib
import logging
import os
from typing import TYPE_CHECKING

from pydantic import ValidationError as PydanticValidationError

from zone_selection.core.constants import DEFAULT_BLOB_CONTAINER
from zone_selection.core.exceptions import StoreError
from zone_selection.models.persisted import PersistedSelection
from zone_selection.storage.base import SelectionStore

if TYPE_CHECKING:
    from azure.storage.blob import BlobServiceClient

logger = logging.getLogger("zone_selection.storage.blob")

BLOB_PREFIX = "selections"
CONNECTION_STRING_ENV = "AzureWebJobsStorage"


class BlobSelectionStore(SelectionStore):
    """Blob-backed store.

    Args:
        blob_service_client: An ``azure.storage.blob.BlobServiceClient``.
        container: Blob container name (created on first write).
    """

    def __init__(
        self,
        blob_service_client: BlobServiceClient,
        container: str = DEFAULT_BLOB_CONTAINER,
    ) -> None:
        super().__init__()
        self._client = blob_service_client
        self._container = container or DEFAULT_BLOB_CONTAINER
        self._container_ready = False

    @classmethod
    def from_env(cls, container: str = DEFAULT_BLOB_CONTAINER) -> BlobSelectionStore:
        """Create a store from the ``AzureWebJobsStorage`` connection string.

        Raises:
            StoreError: If the environment variable is not set.
        """
        from azure.storage.blob import BlobServiceClient

        connection_string = os.environ.get(CONNECTION_STRING_ENV, "")
        if not connection_string:
            msg = f"{CONNECTION_STRING_ENV} environment variable is not set"
            raise StoreError(msg, code="MISSING_CONNECTION_STRING", retryable=False)
        return cls(BlobServiceClient.from_connection_string(connection_string), container)

    @property
    def container(self) -> str:
        return self._container

    @staticmethod
    def blob_path_for(key: str) -> str:
        return f"{BLOB_PREFIX}/{key}.json"

    def _read(self, key: str) -> list[str] | None:
        from azure.core.exceptions import AzureError, ResourceNotFoundError

        blob_client = self._client.get_blob_client(
            container=self._container, blob=self.blob_path_for(key)
        )
        try:
            data = blob_client.download_blob().readall()
        except ResourceNotFoundError:
            return None
        except AzureError as exc:
            msg = f"Cannot read selection blob {self.blob_path_for(key)}: {exc}"
            raise StoreError(msg) from exc

        try:
            record = PersistedSelection.model_validate_json(data)
        except PydanticValidationError as exc:
            msg = f"Malformed selection blob {self.blob_path_for(key)}: {exc}"
            raise StoreError(msg, retryable=False) from exc
        return record.zone_ids

    def _write(self, key: str, ids: list[str]) -> None:
        from azure.core.exceptions import AzureError, ResourceExistsError

        blob_path = self.blob_path_for(key)
        payload = PersistedSelection(key=key, zone_ids=ids).model_dump_json().encode("utf-8")
        try:
            if not self._container_ready:
                container_client = self._client.get_container_client(self._container)
                with contextlib.suppress(ResourceExistsError):
                    container_client.create_container()
                self._container_ready = True
            blob_client = self._client.get_blob_client(container=self._container, blob=blob_path)
            blob_client.upload_blob(payload, overwrite=True)
        except AzureError as exc:
            msg = f"Cannot write selection blob {blob_path}: {exc}"
            raise StoreError(msg) from exc

        logger.debug(
            "Selection uploaded | container=%s | path=%s | count=%d",
            self._container,
            blob_path,
            len(ids),
        )
