"""Configuration objects for cluster-search.

Backend destinations are declared with `ResourceRegistry` objects, the same
shape as the `search.karmada.io/v1alpha1` API:

```yaml
apiVersion: search.karmada.io/v1alpha1
kind: ResourceRegistry
metadata:
  name: pods
spec:
  targetCluster:
    clusterNames:
    - member-a
  resourceSelectors:
  - apiVersion: v1
    kind: Pod
  backendStore:
    openSearch:
      addresses:
      - https://opensearch.example.com:9200
      secretRef:
        namespace: karmada-system
        name: opensearch-credentials
```
"""

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Any

import aiofiles
import yaml
from mashumaro import DataClassDictMixin, field_options
from mashumaro.config import BaseConfig
from mashumaro.exceptions import MissingField, InvalidFieldValue

from .exceptions import InputException
from .resource import ResourceObject

__all__ = [
    "SecretReference",
    "OpenSearchConfig",
    "InMemoryConfig",
    "BackendStoreConfig",
    "ResourceSelector",
    "ResourceRegistry",
    "read_resource_registries",
]

_LOGGER = logging.getLogger(__name__)

SEARCH_DOMAIN = "search.karmada.io"
RESOURCE_REGISTRY_KIND = "ResourceRegistry"


@dataclass(frozen=True)
class SecretReference(DataClassDictMixin):
    """A reference to a secret holding backend credentials."""

    namespace: str = ""
    name: str = ""

    @property
    def is_empty(self) -> bool:
        """Return True if the reference does not identify a secret."""
        return not self.namespace or not self.name

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True)
class OpenSearchConfig(DataClassDictMixin):
    """Connection settings for an OpenSearch cluster."""

    addresses: list[str] = field(default_factory=list)
    """The addresses of the OpenSearch nodes."""

    secret_ref: SecretReference = field(
        metadata=field_options(alias="secretRef"), default_factory=SecretReference
    )
    """The secret holding the `username` and `password` to connect with."""


@dataclass(frozen=True)
class InMemoryConfig(DataClassDictMixin):
    """Settings for the process local backend used for testing."""


@dataclass(frozen=True)
class BackendStoreConfig(DataClassDictMixin):
    """The destination that objects are indexed into.

    Exactly one backend is expected to be set.
    """

    open_search: OpenSearchConfig | None = field(
        metadata=field_options(alias="openSearch"), default=None
    )
    in_memory: InMemoryConfig | None = field(
        metadata=field_options(alias="inMemory"), default=None
    )

    class Config(BaseConfig):
        omit_none = True
        serialize_by_alias = True


@dataclass(frozen=True)
class ResourceSelector(DataClassDictMixin):
    """Selects the objects indexed by a ResourceRegistry."""

    api_version: str = field(metadata=field_options(alias="apiVersion"))
    kind: str
    namespace: str | None = None
    """Only select objects in this namespace when set."""

    def matches(self, obj: ResourceObject) -> bool:
        """Return True if the selector selects the object."""
        if obj.api_version != self.api_version or obj.kind != self.kind:
            return False
        return not self.namespace or obj.namespace == self.namespace


@dataclass(frozen=True)
class ResourceRegistry(DataClassDictMixin):
    """Declares which member cluster objects are indexed into which backend."""

    name: str
    target_clusters: list[str] = field(default_factory=list)
    resource_selectors: list[ResourceSelector] = field(default_factory=list)
    backend_store: BackendStoreConfig = field(default_factory=BackendStoreConfig)

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "ResourceRegistry":
        """Parse a ResourceRegistry from a raw kubernetes object."""
        if not (api_version := doc.get("apiVersion")):
            raise InputException(f"Invalid object missing apiVersion: {doc}")
        if not api_version.startswith(SEARCH_DOMAIN):
            raise InputException(f"Invalid object expected '{SEARCH_DOMAIN}': {doc}")
        if doc.get("kind") != RESOURCE_REGISTRY_KIND:
            raise InputException(
                f"Invalid object expected kind {RESOURCE_REGISTRY_KIND}: {doc}"
            )
        if not (metadata := doc.get("metadata")):
            raise InputException(f"Invalid {cls} missing metadata: {doc}")
        if not isinstance(metadata, dict):
            raise InputException(f"Invalid {cls} metadata is not a mapping: {doc}")
        if not (name := metadata.get("name")):
            raise InputException(f"Invalid {cls} missing metadata.name: {doc}")
        if not isinstance(spec := doc.get("spec") or {}, dict):
            raise InputException(
                f"Invalid ResourceRegistry {name}: spec is not a mapping"
            )
        target_cluster = spec.get("targetCluster") or {}
        if not isinstance(backend_store := spec.get("backendStore") or {}, dict):
            raise InputException(
                f"Invalid ResourceRegistry {name}: backendStore is not a mapping"
            )
        cluster_names = _list_field(name, "clusterNames", target_cluster)
        selectors = _list_field(name, "resourceSelectors", spec)
        if (open_search := backend_store.get("openSearch")) is not None:
            _list_field(name, "openSearch.addresses", open_search, "addresses")
        try:
            return cls(
                name=name,
                target_clusters=[str(cluster) for cluster in cluster_names],
                resource_selectors=[
                    ResourceSelector.from_dict(selector) for selector in selectors
                ],
                backend_store=BackendStoreConfig.from_dict(backend_store),
            )
        except (MissingField, InvalidFieldValue) as err:
            raise InputException(f"Invalid ResourceRegistry {name}: {err}") from err


def _list_field(
    registry: str, path: str, parent: dict[str, Any], key: str | None = None
) -> list[Any]:
    """Return the list value of a field, rejecting scalars and mappings."""
    if not isinstance(parent, dict):
        raise InputException(
            f"Invalid ResourceRegistry {registry}: parent of {path} is not a mapping"
        )
    value = parent.get(key or path)
    if value is None:
        return []
    if not isinstance(value, list):
        raise InputException(
            f"Invalid ResourceRegistry {registry}: {path} must be a list: {value!r}"
        )
    return value


async def read_resource_registries(path: Path) -> list[ResourceRegistry]:
    """Read every ResourceRegistry object from a multi-document YAML file."""
    async with aiofiles.open(str(path)) as registry_file:
        content = await registry_file.read()
    try:
        docs = list(yaml.safe_load_all(content))
    except yaml.YAMLError as err:
        raise InputException(f"File {path} failed to parse as yaml: {err}") from err
    registries = []
    for doc in docs:
        if not doc:
            continue
        if not isinstance(doc, dict):
            raise InputException(f"File {path} contains a non-mapping document: {doc}")
        if doc.get("kind") != RESOURCE_REGISTRY_KIND:
            _LOGGER.debug("Skipping %s object in %s", doc.get("kind"), path)
            continue
        registries.append(ResourceRegistry.parse_doc(doc))
    return registries
