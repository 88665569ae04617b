"""Outcome of a single synchronization of an object into a backend."""

from dataclasses import dataclass
from enum import StrEnum


class Status(StrEnum):
    """Result status for a single write or delete."""

    SYNCED = "Synced"
    SKIPPED = "Skipped"
    FAILED = "Failed"


class Operation(StrEnum):
    """The operation issued against the backend."""

    UPSERT = "Upsert"
    DELETE = "Delete"


@dataclass
class SyncResult:
    """Status and optional error message for one object event.

    A failed result is local to the event: the object is dropped and is
    expected to be delivered again by the next resync of the watch layer.
    """

    status: Status
    operation: Operation
    resource: str
    uid: str | None = None
    collection: str | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        """Return True if the event was dropped."""
        return self.status == Status.FAILED

    def __str__(self) -> str:
        """Return a string representation of the result."""
        if self.error:
            return f"{self.operation} {self.resource} {self.status}: {self.error}"
        return f"{self.operation} {self.resource} {self.status}"
