"""Module for in memory backend store."""

import copy
import logging
import threading
from typing import Any, Self

from cluster_search.config import BackendStoreConfig
from cluster_search.exceptions import (
    BackendError,
    CollectionExistsError,
    ConfigurationError,
    DocumentNotFoundError,
)
from cluster_search.secret import SecretStore

from .collection import DEFAULT_PREFIX
from .store import BackendStore

_LOGGER = logging.getLogger(__name__)


class InMemoryBackendStore(BackendStore):
    """In-memory implementation of the BackendStore interface.

    Documents are kept per collection keyed by id. Useful for tests and for
    running the synchronization pipeline without an external backend.
    """

    def __init__(self, cluster: str, prefix: str = DEFAULT_PREFIX) -> None:
        """Initialize the InMemoryBackendStore."""
        super().__init__(cluster, prefix)
        self._data: dict[str, dict[str, dict[str, Any]]] = {}
        self._data_lock = threading.Lock()
        self._closed = False

    @classmethod
    def initialize(
        cls,
        cluster: str,
        config: BackendStoreConfig,
        secret_store: SecretStore | None = None,
    ) -> Self:
        """Return a new empty store."""
        if config is None or config.in_memory is None:
            raise ConfigurationError("in memory backend config is not set")
        _LOGGER.info("Creating in memory backend store: %s", cluster)
        return cls(cluster)

    def create_collection(self, name: str) -> None:
        """Create an empty collection."""
        with self._data_lock:
            self._check_open()
            if name in self._data:
                raise CollectionExistsError(f"Collection {name} already exists")
            self._data[name] = {}

    def write_document(
        self, collection: str, doc_id: str, body: dict[str, Any]
    ) -> None:
        """Write the document, replacing any document with the same id."""
        with self._data_lock:
            self._check_open()
            if (documents := self._data.get(collection)) is None:
                raise BackendError(f"Collection {collection} does not exist")
            documents[doc_id] = copy.deepcopy(body)

    def delete_document(self, collection: str, doc_id: str) -> None:
        """Delete the document with the id."""
        with self._data_lock:
            self._check_open()
            documents = self._data.get(collection)
            if documents is None or doc_id not in documents:
                raise DocumentNotFoundError(
                    f"Document {doc_id} not found in {collection}"
                )
            del documents[doc_id]

    def get_document(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Return a copy of the document, or None if it does not exist."""
        with self._data_lock:
            document = self._data.get(collection, {}).get(doc_id)
            return copy.deepcopy(document) if document is not None else None

    def list_documents(self, collection: str) -> dict[str, dict[str, Any]]:
        """Return copies of all documents in the collection keyed by id."""
        with self._data_lock:
            return copy.deepcopy(self._data.get(collection, {}))

    def list_collections(self) -> list[str]:
        """Return the names of all collections."""
        with self._data_lock:
            return sorted(self._data)

    @property
    def closed(self) -> bool:
        """Return True if the store has been closed."""
        return self._closed

    def close(self) -> None:
        """Reject any further calls to the store."""
        with self._data_lock:
            self._closed = True

    def _check_open(self) -> None:
        if self._closed:
            raise BackendError(f"Backend store for {self.cluster} is closed")
