"""Tests for resolving backend credentials."""

import base64
import logging

import pytest

from cluster_search.config import SecretReference
from cluster_search.exceptions import InputException, ObjectNotFoundError
from cluster_search.secret import (
    Credentials,
    InMemorySecretStore,
    SecretStore,
    resolve_credentials,
)


def b64(value: str) -> str:
    return base64.b64encode(value.encode()).decode()


@pytest.fixture
def store() -> InMemorySecretStore:
    store = InMemorySecretStore()
    store.add_doc(
        {
            "apiVersion": "v1",
            "kind": "Secret",
            "metadata": {"name": "creds", "namespace": "karmada-system"},
            "data": {"username": b64("admin"), "password": b64("s3cret")},
        }
    )
    return store


def test_add_doc(store: InMemorySecretStore) -> None:
    """Test base64 encoded data is decoded."""
    assert store.get_secret("karmada-system", "creds") == {
        "username": "admin",
        "password": "s3cret",
    }


def test_string_data_takes_precedence() -> None:
    """Test stringData values override data values."""
    store = InMemorySecretStore()
    store.add_doc(
        {
            "apiVersion": "v1",
            "kind": "Secret",
            "metadata": {"name": "creds"},
            "data": {"username": b64("admin")},
            "stringData": {"username": "other", "password": "pw"},
        }
    )
    assert store.get_secret("default", "creds") == {
        "username": "other",
        "password": "pw",
    }


def test_add_invalid_doc() -> None:
    """Test adding objects that are not valid secrets."""
    store = InMemorySecretStore()
    with pytest.raises(InputException, match="expected kind Secret"):
        store.add_doc({"apiVersion": "v1", "kind": "ConfigMap", "metadata": {}})
    with pytest.raises(InputException, match="invalid data for username"):
        store.add_doc(
            {
                "apiVersion": "v1",
                "kind": "Secret",
                "metadata": {"name": "creds"},
                "data": {"username": "abc"},
            }
        )


def test_get_missing_secret(store: InMemorySecretStore) -> None:
    with pytest.raises(ObjectNotFoundError):
        store.get_secret("karmada-system", "missing")


def test_resolve_credentials(store: InMemorySecretStore) -> None:
    """Test credentials are read from the referenced secret."""
    ref = SecretReference(namespace="karmada-system", name="creds")
    assert resolve_credentials(store, ref) == Credentials(
        username="admin", password="s3cret"
    )


@pytest.mark.parametrize(
    ("ref", "message"),
    [
        (None, "No secret configured"),
        (SecretReference(), "No secret configured"),
        (SecretReference(namespace="karmada-system"), "No secret configured"),
        (
            SecretReference(namespace="karmada-system", name="missing"),
            "Cannot get secret",
        ),
    ],
    ids=["none", "empty", "no-name", "missing"],
)
def test_resolve_without_auth(
    store: InMemorySecretStore,
    ref: SecretReference | None,
    message: str,
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Test unresolvable credentials fall back to no authentication."""
    with caplog.at_level(logging.WARNING):
        assert resolve_credentials(store, ref) is None
    assert message in caplog.text


def test_resolve_without_username(caplog: pytest.LogCaptureFixture) -> None:
    """Test a secret without a username is not used."""
    store = InMemorySecretStore()
    store.add_secret("ns", "creds", {"password": "pw"})
    with caplog.at_level(logging.WARNING):
        assert resolve_credentials(store, SecretReference("ns", "creds")) is None
    assert "has no username" in caplog.text


def test_resolve_without_store() -> None:
    assert resolve_credentials(None, SecretReference("ns", "creds")) is None


def test_resolve_store_failure() -> None:
    """Test errors from the secret store are not fatal."""

    class FailingSecretStore(SecretStore):
        def get_secret(self, namespace: str, name: str) -> dict[str, str]:
            raise ObjectNotFoundError("unavailable")

    assert resolve_credentials(FailingSecretStore(), SecretReference("ns", "c")) is None
