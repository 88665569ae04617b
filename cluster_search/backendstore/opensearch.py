"""Backend store indexing objects into OpenSearch.

Each kind is stored in its own index with a fixed mapping. Labels,
annotations and owner references are indexed as `flat_object` fields so
arbitrary keys do not grow the mapping, and `spec` and `status` are indexed
as plain text.
"""

import logging
from typing import Any, Self

from opensearchpy import OpenSearch
from opensearchpy.exceptions import (
    ImproperlyConfigured,
    NotFoundError,
    OpenSearchException,
    RequestError,
    TransportError,
)

from cluster_search.config import BackendStoreConfig
from cluster_search.exceptions import (
    BackendConnectionError,
    BackendError,
    CollectionExistsError,
    ConfigurationError,
    DocumentNotFoundError,
)
from cluster_search.secret import SecretStore, resolve_credentials

from .collection import DEFAULT_PREFIX
from .store import BackendStore

_LOGGER = logging.getLogger(__name__)

ALREADY_EXISTS_ERROR = "resource_already_exists_exception"
DEFAULT_TIMEOUT = 30


def _keyword_text() -> dict[str, Any]:
    return {
        "type": "text",
        "fields": {"keyword": {"type": "keyword", "ignore_above": 256}},
    }


INDEX_MAPPING: dict[str, Any] = {
    "settings": {
        "index": {
            "number_of_shards": 1,
            "number_of_replicas": 0,
        }
    },
    "mappings": {
        "properties": {
            "apiVersion": {"type": "text"},
            "kind": {"type": "text"},
            "metadata": {
                "properties": {
                    "annotations": {"type": "flat_object"},
                    "creationTimestamp": {"type": "text"},
                    "deletionTimestamp": {"type": "text"},
                    "labels": {"type": "flat_object"},
                    "name": _keyword_text(),
                    "namespace": _keyword_text(),
                    "ownerReferences": {"type": "flat_object"},
                    "resourceVersion": _keyword_text(),
                }
            },
            "spec": {"type": "text"},
            "status": {"type": "text"},
        }
    },
}


def _already_exists(err: TransportError) -> bool:
    """Return True if the error reports that an index already exists."""
    return err.error == ALREADY_EXISTS_ERROR or "already exists" in str(err)


class OpenSearchBackendStore(BackendStore):
    """Indexes the objects of one member cluster into OpenSearch."""

    def __init__(
        self, cluster: str, client: OpenSearch, prefix: str = DEFAULT_PREFIX
    ) -> None:
        """Initialize the OpenSearchBackendStore with a connected client."""
        super().__init__(cluster, prefix)
        self._client = client

    @classmethod
    def initialize(
        cls,
        cluster: str,
        config: BackendStoreConfig,
        secret_store: SecretStore | None = None,
    ) -> Self:
        """Connect to OpenSearch and return a new store."""
        _LOGGER.info("Creating OpenSearch backend store: %s", cluster)
        if config is None or config.open_search is None:
            raise ConfigurationError("OpenSearch config is not set")
        open_search = config.open_search
        if not open_search.addresses:
            raise ConfigurationError("No OpenSearch addresses configured")

        kwargs: dict[str, Any] = {}
        if credentials := resolve_credentials(secret_store, open_search.secret_ref):
            kwargs["http_auth"] = (credentials.username, credentials.password)

        try:
            client = OpenSearch(
                hosts=list(open_search.addresses),
                timeout=DEFAULT_TIMEOUT,
                **kwargs,
            )
        except (ImproperlyConfigured, ValueError) as err:
            raise ConfigurationError(f"Cannot create OpenSearch client: {err}") from err

        try:
            info = client.info()
        except OpenSearchException as err:
            client.close()
            raise BackendConnectionError(
                f"Cannot get OpenSearch info from {open_search.addresses}: {err}"
            ) from err
        _LOGGER.debug("OpenSearch info: %s", info)
        return cls(cluster, client)

    def create_collection(self, name: str) -> None:
        """Create the index with the document mapping."""
        try:
            response = self._client.indices.create(index=name, body=INDEX_MAPPING)
        except RequestError as err:
            if _already_exists(err):
                raise CollectionExistsError(f"Index {name} already exists") from err
            raise BackendError(f"Cannot create index {name}: {err}") from err
        except OpenSearchException as err:
            raise BackendError(f"Cannot create index {name}: {err}") from err
        _LOGGER.debug("Create index response: %s", response)

    def write_document(
        self, collection: str, doc_id: str, body: dict[str, Any]
    ) -> None:
        """Index the document, replacing any document with the same id."""
        try:
            response = self._client.index(index=collection, id=doc_id, body=body)
        except OpenSearchException as err:
            raise BackendError(f"Cannot upsert {doc_id}: {err}") from err
        _LOGGER.debug("Upsert response: %s", response)

    def delete_document(self, collection: str, doc_id: str) -> None:
        """Delete the document from the index."""
        try:
            response = self._client.delete(index=collection, id=doc_id)
        except NotFoundError as err:
            raise DocumentNotFoundError(
                f"Document {doc_id} not found in {collection}"
            ) from err
        except OpenSearchException as err:
            raise BackendError(f"Cannot delete {doc_id}: {err}") from err
        _LOGGER.debug("Delete response: %s", response)

    def close(self) -> None:
        """Close the connections held by the client."""
        self._client.close()
