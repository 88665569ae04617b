"""Representation of the resource objects observed in member clusters.

The watch layer delivers loosely typed Kubernetes objects. `ResourceObject` is
the narrow view of such an object that the rest of the library reads: the
identifying metadata plus the opaque `spec` and `status` sections. Objects
are built at the watch boundary with `ResourceObject.parse_doc` and are never
mutated afterwards; callers that need to change one take a `deep_copy` first.
"""

import copy
from dataclasses import dataclass, field
import datetime
from enum import StrEnum
from typing import Any

from .exceptions import InputException

__all__ = [
    "ResourceObject",
    "ResourceEvent",
    "EventType",
    "parse_timestamp",
]


def parse_timestamp(value: Any) -> datetime.datetime | None:
    """Parse an RFC3339 timestamp as found in object metadata."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        return value
    if not isinstance(value, str):
        raise InputException(f"Invalid timestamp {value!r}")
    try:
        return datetime.datetime.fromisoformat(value)
    except ValueError as err:
        raise InputException(f"Invalid timestamp {value!r}: {err}") from err


@dataclass
class ResourceObject:
    """A generic resource object from a member cluster."""

    kind: str
    """The kind of the object."""

    api_version: str
    """The apiVersion of the object."""

    name: str
    """The name of the object."""

    uid: str
    """The unique identifier assigned by the member cluster."""

    namespace: str | None = None
    """The namespace of the object, unset for cluster scoped objects."""

    labels: dict[str, str] = field(default_factory=dict)
    """Labels attached to the object."""

    annotations: dict[str, str] | None = None
    """Annotations attached to the object."""

    creation_timestamp: datetime.datetime | None = None
    """When the object was created."""

    deletion_timestamp: datetime.datetime | None = None
    """When the object was marked for deletion."""

    resource_version: str | None = None
    """The resource version of the object in its member cluster."""

    owner_references: list[dict[str, Any]] = field(default_factory=list)
    """The owners of the object."""

    spec: Any = None
    """The opaque spec of the object."""

    status: Any = None
    """The opaque status of the object."""

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "ResourceObject":
        """Parse a ResourceObject from a raw kubernetes object."""
        if not isinstance(doc, dict):
            raise InputException(f"Invalid object expected a mapping: {doc!r}")
        if not (kind := doc.get("kind")):
            raise InputException(f"Invalid object missing kind: {doc}")
        if not (api_version := doc.get("apiVersion")):
            raise InputException(f"Invalid object missing apiVersion: {doc}")
        if not (metadata := doc.get("metadata")):
            raise InputException(f"Invalid object missing metadata: {doc}")
        if not isinstance(metadata, dict):
            raise InputException(f"Invalid object metadata is not a mapping: {doc}")
        if not (name := metadata.get("name")):
            raise InputException(f"Invalid object missing metadata.name: {doc}")
        if not (uid := metadata.get("uid")):
            raise InputException(f"Invalid object missing metadata.uid: {doc}")
        return cls(
            kind=kind,
            api_version=api_version,
            name=name,
            uid=str(uid),
            namespace=metadata.get("namespace"),
            labels=dict(metadata.get("labels") or {}),
            annotations=metadata.get("annotations"),
            creation_timestamp=parse_timestamp(metadata.get("creationTimestamp")),
            deletion_timestamp=parse_timestamp(metadata.get("deletionTimestamp")),
            resource_version=metadata.get("resourceVersion"),
            owner_references=list(metadata.get("ownerReferences") or []),
            spec=doc.get("spec"),
            status=doc.get("status"),
        )

    def deep_copy(self) -> "ResourceObject":
        """Return a copy that shares no mutable state with this object."""
        return copy.deepcopy(self)

    @property
    def namespaced_name(self) -> str:
        if self.namespace:
            return f"{self.namespace}/{self.name}"
        return self.name

    def __str__(self) -> str:
        """Return the kind and namespaced name concatenated as an id."""
        return f"{self.kind}/{self.namespaced_name}"


class EventType(StrEnum):
    """Notifications delivered by the watch layer."""

    ADDED = "Added"
    UPDATED = "Updated"
    DELETED = "Deleted"


@dataclass(frozen=True)
class ResourceEvent:
    """A single change to an object observed in a member cluster."""

    type: EventType
    """The kind of change."""

    cluster: str
    """The member cluster the object was observed in."""

    obj: Any
    """The object after the change, or the last known state when deleted."""

    old_obj: Any = None
    """The previous state of the object for updates."""
