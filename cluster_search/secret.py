"""Module for resolving backend credentials from secrets."""

from abc import ABC, abstractmethod
import base64
import binascii
from dataclasses import dataclass
import logging
from typing import Any

from .config import SecretReference
from .exceptions import InputException, ObjectNotFoundError, SearchException

__all__ = [
    "Credentials",
    "SecretStore",
    "InMemorySecretStore",
    "resolve_credentials",
]

_LOGGER = logging.getLogger(__name__)

SECRET_KIND = "Secret"
USERNAME_KEY = "username"
PASSWORD_KEY = "password"


@dataclass
class Credentials:
    """Authentication credentials."""

    username: str
    password: str


class SecretStore(ABC):
    """Looks up secrets by namespace and name."""

    @abstractmethod
    def get_secret(self, namespace: str, name: str) -> dict[str, str]:
        """Return the decoded data of the secret.

        Raises:
            ObjectNotFoundError: If the secret does not exist.
        """


class InMemorySecretStore(SecretStore):
    """A secret store holding decoded secrets in memory."""

    def __init__(self) -> None:
        """Initialize the InMemorySecretStore."""
        self._secrets: dict[tuple[str, str], dict[str, str]] = {}

    def add_secret(self, namespace: str, name: str, data: dict[str, str]) -> None:
        """Add or replace a secret."""
        self._secrets[(namespace, name)] = dict(data)

    def add_doc(self, doc: dict[str, Any]) -> None:
        """Add a secret from a raw `v1/Secret` kubernetes object.

        Values in `data` are base64 encoded, values in `stringData` are plain
        text and take precedence, as when applied to a cluster.
        """
        if doc.get("kind") != SECRET_KIND:
            raise InputException(f"Invalid object expected kind {SECRET_KIND}: {doc}")
        if not (metadata := doc.get("metadata")):
            raise InputException(f"Invalid Secret missing metadata: {doc}")
        if not (name := metadata.get("name")):
            raise InputException(f"Invalid Secret missing metadata.name: {doc}")
        namespace = metadata.get("namespace", "default")
        data: dict[str, str] = {}
        for key, value in (doc.get("data") or {}).items():
            try:
                data[key] = base64.b64decode(value).decode("utf-8")
            except (binascii.Error, UnicodeDecodeError) as err:
                raise InputException(
                    f"Secret {namespace}/{name} contains invalid data for {key}"
                ) from err
        for key, value in (doc.get("stringData") or {}).items():
            data[key] = str(value)
        self.add_secret(namespace, name, data)

    def get_secret(self, namespace: str, name: str) -> dict[str, str]:
        """Return the decoded data of the secret."""
        if (data := self._secrets.get((namespace, name))) is None:
            raise ObjectNotFoundError(f"Secret {namespace}/{name} not found")
        return dict(data)


def resolve_credentials(
    store: SecretStore | None, ref: SecretReference | None
) -> Credentials | None:
    """Return the credentials referenced by the secret, if any.

    Resolution never fails: a missing reference or a secret that cannot be
    read logs a warning and returns None so the caller connects without
    authentication.
    """
    if ref is None or ref.is_empty:
        _LOGGER.warning("No secret configured for backend, trying without auth")
        return None
    if store is None:
        _LOGGER.warning("No secret store to read %s, trying without auth", ref)
        return None
    try:
        data = store.get_secret(ref.namespace, ref.name)
    except SearchException as err:
        _LOGGER.warning("Cannot get secret %s: %s, trying without auth", ref, err)
        return None
    if not (username := data.get(USERNAME_KEY)):
        _LOGGER.warning("Secret %s has no %s, trying without auth", ref, USERNAME_KEY)
        return None
    return Credentials(username=username, password=data.get(PASSWORD_KEY, ""))
