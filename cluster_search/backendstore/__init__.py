"""
The backendstore module mirrors member cluster objects into search backends.

- A BackendStore indexes the objects of one member cluster into one backend.
- Objects are normalized into documents and written to one collection per kind.
- Collections are created on first use; creation tolerates concurrent writers.
- The BackendRegistry holds one store per destination and routes watch events.

Backend failures never propagate to the caller delivering the events: every
operation returns a SyncResult instead.
"""

from .collection import CollectionManager, collection_name, DEFAULT_PREFIX
from .in_memory import InMemoryBackendStore
from .opensearch import OpenSearchBackendStore
from .pipeline import SyncPipeline
from .registry import BackendRegistry, Destination, create_backend_store
from .status import Operation, Status, SyncResult
from .store import BackendStore, EventSink

__all__ = [
    "BackendStore",
    "EventSink",
    "InMemoryBackendStore",
    "OpenSearchBackendStore",
    "CollectionManager",
    "collection_name",
    "DEFAULT_PREFIX",
    "SyncPipeline",
    "BackendRegistry",
    "Destination",
    "create_backend_store",
    "Operation",
    "Status",
    "SyncResult",
]
