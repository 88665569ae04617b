"""Registry of backend stores for every configured destination.

A destination pairs a `ResourceRegistry` with one of its target member
clusters. Each destination owns an independent backend store, so a
destination that fails to initialize or a backend that is degraded never
affects the others.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
import logging
import threading

from cluster_search.config import BackendStoreConfig, ResourceRegistry, ResourceSelector
from cluster_search.context import trace_context
from cluster_search.exceptions import ConfigurationError, SearchException
from cluster_search.resource import ResourceEvent, ResourceObject
from cluster_search.secret import SecretStore

from .in_memory import InMemoryBackendStore
from .opensearch import OpenSearchBackendStore
from .status import SyncResult
from .store import BackendStore

_LOGGER = logging.getLogger(__name__)

BackendFactory = Callable[[str, BackendStoreConfig, SecretStore | None], BackendStore]


def create_backend_store(
    cluster: str, config: BackendStoreConfig, secret_store: SecretStore | None
) -> BackendStore:
    """Initialize the backend store selected by the configuration.

    Raises:
        ConfigurationError: If no backend or more than one backend is set.
        BackendConnectionError: If the backend cannot be reached.
    """
    if config.open_search is not None and config.in_memory is not None:
        raise ConfigurationError("Only one backend store may be configured")
    if config.open_search is not None:
        return OpenSearchBackendStore.initialize(cluster, config, secret_store)
    if config.in_memory is not None:
        return InMemoryBackendStore.initialize(cluster, config, secret_store)
    raise ConfigurationError("No backend store configured")


@dataclass(frozen=True, order=True)
class Destination:
    """Identifier for the backend store of one registry and member cluster."""

    registry: str
    cluster: str

    def __str__(self) -> str:
        return f"{self.registry}/{self.cluster}"


@dataclass(frozen=True)
class _Entry:
    store: BackendStore
    config: BackendStoreConfig
    selectors: tuple[ResourceSelector, ...]

    def selects(self, obj: ResourceObject) -> bool:
        if not self.selectors:
            return True
        return any(selector.matches(obj) for selector in self.selectors)


class BackendRegistry:
    """Holds one backend store per destination and routes events to them."""

    def __init__(
        self,
        secret_store: SecretStore | None = None,
        factory: BackendFactory = create_backend_store,
    ) -> None:
        """Initialize the BackendRegistry.

        Args:
            secret_store: Used by backends to resolve credentials.
            factory: Creates a connected backend store for a destination.
        """
        self._secret_store = secret_store
        self._factory = factory
        self._entries: dict[Destination, _Entry] = {}
        self._lock = threading.Lock()

    def register(
        self,
        destination: Destination,
        config: BackendStoreConfig,
        selectors: Iterable[ResourceSelector] = (),
    ) -> BackendStore:
        """Create the backend store for the destination.

        Any store previously registered for the destination is closed and
        replaced. If the new store cannot be created the error is raised and
        the previous store stays registered.
        """
        with trace_context(f"Initialize {destination}"):
            store = self._factory(destination.cluster, config, self._secret_store)
        with self._lock:
            previous = self._entries.get(destination)
            self._entries[destination] = _Entry(
                store=store, config=config, selectors=tuple(selectors)
            )
        if previous is not None:
            _LOGGER.debug("Replacing backend store for %s", destination)
            previous.store.close()
        _LOGGER.info("Registered backend store for %s", destination)
        return store

    def unregister(self, destination: Destination) -> bool:
        """Close and remove the backend store for the destination.

        Returns True if a store was registered.
        """
        with self._lock:
            entry = self._entries.pop(destination, None)
        if entry is None:
            return False
        entry.store.close()
        _LOGGER.info("Unregistered backend store for %s", destination)
        return True

    def get(self, destination: Destination) -> BackendStore | None:
        """Return the backend store for the destination."""
        with self._lock:
            entry = self._entries.get(destination)
        return entry.store if entry is not None else None

    def destinations(self) -> list[Destination]:
        """Return all registered destinations."""
        with self._lock:
            return sorted(self._entries)

    def apply(
        self, registry: ResourceRegistry
    ) -> dict[Destination, SearchException | None]:
        """Create or update the backend stores declared by a ResourceRegistry.

        Stores of clusters no longer targeted are removed and stores whose
        configuration is unchanged are kept. A failure for one cluster is
        logged and reported in the result without affecting the others.
        """
        targets = set(registry.target_clusters)
        for destination in self.destinations():
            if destination.registry != registry.name:
                continue
            if destination.cluster not in targets:
                self.unregister(destination)

        selectors = tuple(registry.resource_selectors)
        results: dict[Destination, SearchException | None] = {}
        for cluster in registry.target_clusters:
            destination = Destination(registry.name, cluster)
            with self._lock:
                entry = self._entries.get(destination)
            if (
                entry is not None
                and entry.config == registry.backend_store
                and entry.selectors == selectors
            ):
                results[destination] = None
                continue
            try:
                self.register(destination, registry.backend_store, selectors)
            except SearchException as err:
                _LOGGER.error(
                    "Cannot create backend store for %s: %s", destination, err
                )
                results[destination] = err
                continue
            results[destination] = None
        return results

    def remove(self, registry_name: str) -> list[Destination]:
        """Unregister every destination of the ResourceRegistry."""
        removed = [d for d in self.destinations() if d.registry == registry_name]
        for destination in removed:
            self.unregister(destination)
        return removed

    def dispatch(self, event: ResourceEvent) -> list[SyncResult]:
        """Deliver the event to every store indexing its member cluster.

        Stores whose selectors do not select the object are skipped. Calls are
        made one store at a time on the calling thread.
        """
        with self._lock:
            entries = [
                entry
                for destination, entry in sorted(self._entries.items())
                if destination.cluster == event.cluster
            ]
        results = []
        for entry in entries:
            if isinstance(event.obj, ResourceObject) and not entry.selects(event.obj):
                continue
            results.append(entry.store.event_sink().handle(event))
        return results

    def close(self) -> None:
        """Close and remove every backend store."""
        for destination in self.destinations():
            self.unregister(destination)
