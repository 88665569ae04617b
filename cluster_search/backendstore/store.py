"""Contract implemented by every search backend."""

from abc import ABC, abstractmethod
import logging
from typing import Any, Self

from cluster_search.config import BackendStoreConfig
from cluster_search.resource import EventType, ResourceEvent
from cluster_search.secret import SecretStore

from .collection import DEFAULT_PREFIX, CollectionManager
from .pipeline import SyncPipeline
from .status import Operation, Status, SyncResult

_LOGGER = logging.getLogger(__name__)


class EventSink:
    """Receives add, update and delete notifications for one backend store.

    Added and updated objects are both upserted; the previous state of an
    updated object is not used. Every call returns a `SyncResult` and never
    raises for backend failures, so a degraded backend does not block the
    watch layer delivering the events.
    """

    def __init__(self, pipeline: SyncPipeline) -> None:
        """Initialize the EventSink."""
        self._pipeline = pipeline

    def on_add(self, obj: Any) -> SyncResult:
        """Handle an object added in the member cluster."""
        return self._pipeline.upsert(obj)

    def on_update(self, old_obj: Any, new_obj: Any) -> SyncResult:
        """Handle an object updated in the member cluster."""
        return self._pipeline.upsert(new_obj)

    def on_delete(self, obj: Any) -> SyncResult:
        """Handle an object removed from the member cluster."""
        return self._pipeline.delete(obj)

    def handle(self, event: ResourceEvent) -> SyncResult:
        """Dispatch a watch event to the matching notification."""
        if event.type == EventType.ADDED:
            return self.on_add(event.obj)
        if event.type == EventType.UPDATED:
            return self.on_update(event.old_obj, event.obj)
        if event.type == EventType.DELETED:
            return self.on_delete(event.obj)
        _LOGGER.error("Unexpected event type %s for %s", event.type, event.obj)
        return SyncResult(
            status=Status.FAILED,
            operation=Operation.UPSERT,
            resource=str(event.obj),
            error=f"unexpected event type {event.type}",
        )


class BackendStore(ABC):
    """Abstract base class for a store that indexes objects of one member cluster.

    Subclasses implement the primitive calls against their backend; the
    synchronization protocol, the collection lifecycle and the event sink are
    shared by every backend.
    """

    def __init__(self, cluster: str, prefix: str = DEFAULT_PREFIX) -> None:
        """Initialize the BackendStore.

        Args:
            cluster: The member cluster recorded on every document.
            prefix: Prefix of every collection name.
        """
        self._cluster = cluster
        self._collections = CollectionManager(self.create_collection, prefix)
        self._pipeline = SyncPipeline(cluster, self, self._collections)
        self._sink = EventSink(self._pipeline)

    @classmethod
    @abstractmethod
    def initialize(
        cls,
        cluster: str,
        config: BackendStoreConfig,
        secret_store: SecretStore | None = None,
    ) -> Self:
        """Validate the configuration and return a connected store.

        Credentials are resolved from the secret store when referenced; a
        failure to resolve them is not fatal and the store connects without
        authentication.

        Raises:
            ConfigurationError: If the configuration is missing settings.
            BackendConnectionError: If the backend cannot be reached.
        """

    @property
    def cluster(self) -> str:
        """The member cluster this store indexes."""
        return self._cluster

    @property
    def collections(self) -> CollectionManager:
        """The collection lifecycle manager for this store."""
        return self._collections

    def event_sink(self) -> EventSink:
        """Return the handler for watch notifications."""
        return self._sink

    def upsert(self, obj: Any) -> SyncResult:
        """Insert or replace the document for the object."""
        return self._pipeline.upsert(obj)

    def delete(self, obj: Any) -> SyncResult:
        """Remove the document for the object."""
        return self._pipeline.delete(obj)

    @abstractmethod
    def create_collection(self, name: str) -> None:
        """Create a collection with the document schema.

        Raises:
            CollectionExistsError: If the collection already exists.
            BackendError: On any other failure.
        """

    @abstractmethod
    def write_document(
        self, collection: str, doc_id: str, body: dict[str, Any]
    ) -> None:
        """Write the document, replacing any document with the same id.

        Raises:
            BackendError: If the write failed.
        """

    @abstractmethod
    def delete_document(self, collection: str, doc_id: str) -> None:
        """Delete the document with the id.

        Raises:
            DocumentNotFoundError: If the document or collection does not exist.
            BackendError: If the delete failed.
        """

    def close(self) -> None:
        """Release any resources held by the store."""
