"""Mapping of resource kinds to backend collections.

Every kind is stored in its own collection, created with a fixed schema the
first time an object of that kind is written. Creation is idempotent: a
collection that already exists, either created by a concurrent writer or left
over from a previous process, is treated as created.
"""

from collections.abc import Callable
import logging
import threading

from cluster_search.exceptions import (
    BackendError,
    CollectionError,
    CollectionExistsError,
)

_LOGGER = logging.getLogger(__name__)

DEFAULT_PREFIX = "kubernetes"


def collection_name(kind: str, prefix: str = DEFAULT_PREFIX) -> str:
    """Return the name of the collection holding objects of the kind."""
    return f"{prefix}-{kind.lower()}"


class CollectionManager:
    """Resolves and lazily creates the collection for each kind.

    Known collections are remembered for the lifetime of the manager. The
    memo is never evicted, so a collection deleted behind the back of a
    running process is not recreated.
    """

    def __init__(
        self, create: Callable[[str], None], prefix: str = DEFAULT_PREFIX
    ) -> None:
        """Initialize the CollectionManager.

        Args:
            create: Creates a collection with its schema. Raises
                CollectionExistsError if the collection exists and
                BackendError on any other failure.
            prefix: Prefix of every collection name.
        """
        self._create = create
        self._prefix = prefix
        self._known: set[str] = set()
        self._lock = threading.Lock()

    def name_for(self, kind: str) -> str:
        """Return the collection name for the kind without creating it."""
        return collection_name(kind, self._prefix)

    def resolve(self, kind: str) -> str:
        """Return the collection for the kind, creating it on first use.

        The lock is held across the creation call so that concurrent first
        writes for a kind issue a single create.

        Raises:
            CollectionError: If the collection could not be created. The name
                is not remembered and creation is attempted again next time.
        """
        name = self.name_for(kind)
        with self._lock:
            if name in self._known:
                return name

            _LOGGER.info("Creating collection %s", name)
            try:
                self._create(name)
            except CollectionExistsError:
                _LOGGER.debug("Collection %s already exists", name)
            except BackendError as err:
                raise CollectionError(name, str(err)) from err

            self._known.add(name)
            return name

    def known(self) -> set[str]:
        """Return the collections known to exist."""
        with self._lock:
            return set(self._known)
