"""Normalization of resource objects into backend documents.

A document is the backend agnostic form of a `ResourceObject`: the metadata
is flattened into simple fields, the member cluster is recorded as an
annotation, and the `spec` and `status` sections are stored as JSON text so
that any payload can be indexed without a schema per kind.
"""

from dataclasses import dataclass, field
import datetime
import json
import logging
from typing import Any

from mashumaro import DataClassDictMixin, field_options
from mashumaro.config import BaseConfig

from .resource import ResourceObject

__all__ = [
    "CACHE_SOURCE_ANNOTATION",
    "DocumentMetadata",
    "ResourceDocument",
    "build_document",
    "format_timestamp",
]

_LOGGER = logging.getLogger(__name__)

# Annotation recording the member cluster a document was cached from
CACHE_SOURCE_ANNOTATION = "resource.karmada.io/cached-from-cluster"

RFC3339_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def format_timestamp(value: datetime.datetime | None) -> str | None:
    """Render a timestamp as an RFC3339 string in UTC."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(datetime.timezone.utc)
    return value.strftime(RFC3339_FORMAT)


def _serialize_section(obj: ResourceObject, section: str, value: Any) -> str:
    """Serialize an opaque section, returning an empty string on failure."""
    try:
        return json.dumps(value, sort_keys=True)
    except (TypeError, ValueError) as err:
        _LOGGER.warning("Cannot serialize %s of %s: %s", section, obj, err)
        return ""


@dataclass
class DocumentMetadata(DataClassDictMixin):
    """Flattened object metadata stored with each document."""

    name: str
    namespace: str | None
    creation_timestamp: str | None = field(
        metadata=field_options(alias="creationTimestamp"), default=None
    )
    deletion_timestamp: str | None = field(
        metadata=field_options(alias="deletionTimestamp"), default=None
    )
    resource_version: str | None = field(
        metadata=field_options(alias="resourceVersion"), default=None
    )
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    owner_references: list[dict[str, Any]] = field(
        metadata=field_options(alias="ownerReferences"), default_factory=list
    )

    class Config(BaseConfig):
        serialize_by_alias = True


@dataclass
class ResourceDocument(DataClassDictMixin):
    """A normalized object ready to be written to a backend."""

    uid: str = field(metadata={"serialize": "omit"})
    """The document identity, taken from the object UID."""

    api_version: str = field(metadata=field_options(alias="apiVersion"))
    kind: str
    metadata: DocumentMetadata

    spec: str = ""
    """The object spec serialized as JSON."""

    status: str = ""
    """The object status serialized as JSON."""

    class Config(BaseConfig):
        serialize_by_alias = True

    @property
    def source_cluster(self) -> str | None:
        """Return the member cluster recorded on the document."""
        return self.metadata.annotations.get(CACHE_SOURCE_ANNOTATION)

    def to_body(self) -> dict[str, Any]:
        """Return the document body as sent to a backend."""
        return self.to_dict()


def build_document(obj: ResourceObject, cluster: str) -> ResourceDocument:
    """Build the document for an object observed in the member cluster.

    The object is copied before the provenance annotation is added so the
    caller's instance, typically shared with a watch cache, is unchanged.
    """
    obj = obj.deep_copy()
    if obj.annotations is None:
        obj.annotations = {}
    obj.annotations[CACHE_SOURCE_ANNOTATION] = cluster

    return ResourceDocument(
        uid=obj.uid,
        api_version=obj.api_version,
        kind=obj.kind,
        metadata=DocumentMetadata(
            name=obj.name,
            namespace=obj.namespace,
            creation_timestamp=format_timestamp(obj.creation_timestamp),
            deletion_timestamp=format_timestamp(obj.deletion_timestamp),
            resource_version=obj.resource_version,
            labels=obj.labels,
            annotations=obj.annotations,
            owner_references=obj.owner_references,
        ),
        spec=_serialize_section(obj, "spec", obj.spec),
        status=_serialize_section(obj, "status", obj.status),
    )
