"""Synchronization of individual objects into a backend store.

Each call handles exactly one object and blocks on the backend calls it
issues. Errors from the backend are logged and returned as a failed
`SyncResult`; nothing is retried here. Dropped events are corrected when the
watch layer delivers the object again on its next resync.
"""

import logging
from typing import Any, TYPE_CHECKING

from cluster_search.document import build_document
from cluster_search.exceptions import (
    BackendError,
    CollectionError,
    DocumentNotFoundError,
)
from cluster_search.resource import ResourceObject

from .collection import CollectionManager
from .status import Operation, Status, SyncResult

if TYPE_CHECKING:
    from .store import BackendStore

_LOGGER = logging.getLogger(__name__)


class SyncPipeline:
    """Upserts and deletes the documents of one member cluster."""

    def __init__(
        self, cluster: str, store: "BackendStore", collections: CollectionManager
    ) -> None:
        """Initialize the SyncPipeline."""
        self._cluster = cluster
        self._store = store
        self._collections = collections

    def upsert(self, obj: Any) -> SyncResult:
        """Write the document for the object, replacing any previous version."""
        if not isinstance(obj, ResourceObject):
            return self._unexpected(Operation.UPSERT, obj)

        document = build_document(obj, self._cluster)
        try:
            collection = self._collections.resolve(obj.kind)
        except CollectionError as err:
            _LOGGER.error("Cannot get collection for %s: %s", obj, err)
            return SyncResult(
                status=Status.FAILED,
                operation=Operation.UPSERT,
                resource=str(obj),
                uid=obj.uid,
                collection=err.collection,
                error=str(err),
            )

        try:
            self._store.write_document(collection, document.uid, document.to_body())
        except BackendError as err:
            _LOGGER.error("Cannot upsert %s into %s: %s", obj, collection, err)
            return SyncResult(
                status=Status.FAILED,
                operation=Operation.UPSERT,
                resource=str(obj),
                uid=obj.uid,
                collection=collection,
                error=str(err),
            )

        _LOGGER.debug("Upserted %s (%s) into %s", obj, obj.uid, collection)
        return SyncResult(
            status=Status.SYNCED,
            operation=Operation.UPSERT,
            resource=str(obj),
            uid=obj.uid,
            collection=collection,
        )

    def delete(self, obj: Any) -> SyncResult:
        """Delete the document for the object.

        The collection is not created; deleting from a collection that does
        not exist is a no-op.
        """
        if not isinstance(obj, ResourceObject):
            return self._unexpected(Operation.DELETE, obj)

        collection = self._collections.name_for(obj.kind)
        try:
            self._store.delete_document(collection, obj.uid)
        except DocumentNotFoundError:
            _LOGGER.debug("Document for %s not found in %s", obj, collection)
            return SyncResult(
                status=Status.SKIPPED,
                operation=Operation.DELETE,
                resource=str(obj),
                uid=obj.uid,
                collection=collection,
            )
        except BackendError as err:
            _LOGGER.error("Cannot delete %s from %s: %s", obj, collection, err)
            return SyncResult(
                status=Status.FAILED,
                operation=Operation.DELETE,
                resource=str(obj),
                uid=obj.uid,
                collection=collection,
                error=str(err),
            )

        _LOGGER.debug("Deleted %s (%s) from %s", obj, obj.uid, collection)
        return SyncResult(
            status=Status.SYNCED,
            operation=Operation.DELETE,
            resource=str(obj),
            uid=obj.uid,
            collection=collection,
        )

    def _unexpected(self, operation: Operation, obj: Any) -> SyncResult:
        """Drop an event that does not carry a resource object."""
        _LOGGER.error(
            "Unexpected type %s for %s from cluster %s",
            type(obj).__name__,
            operation,
            self._cluster,
        )
        return SyncResult(
            status=Status.FAILED,
            operation=operation,
            resource=repr(obj),
            error=f"unexpected type {type(obj).__name__}",
        )
