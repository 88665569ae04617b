"""Exceptions related to cluster-search."""

__all__ = [
    "SearchException",
    "InputException",
    "ConfigurationError",
    "ObjectNotFoundError",
    "BackendError",
    "BackendConnectionError",
    "CollectionError",
    "CollectionExistsError",
    "DocumentNotFoundError",
]


class SearchException(Exception):
    """Generic base exception used for this library."""


class InputException(SearchException):
    """Raised when the input objects or files are not formatted as expected."""


class ConfigurationError(SearchException):
    """Raised when a backend store configuration is missing required settings."""


class ObjectNotFoundError(SearchException):
    """Raised when an object is not found in a store."""


class BackendError(SearchException):
    """Raised when a call against an external backend fails."""


class BackendConnectionError(BackendError):
    """Raised when a backend cannot be reached while initializing."""


class CollectionError(BackendError):
    """Raised when a collection could not be created for a resource kind."""

    def __init__(self, collection: str, message: str | None) -> None:
        super().__init__(
            f"Cannot create collection {collection}: {message or 'Unknown error'}"
        )
        self.collection = collection
        self.message = message


class CollectionExistsError(BackendError):
    """Raised by a backend when a collection already exists."""


class DocumentNotFoundError(BackendError):
    """Raised by a backend when a document or its collection does not exist."""
