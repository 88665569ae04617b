"""Tests for the resource object adapter."""

import datetime
from typing import Any

import pytest

from cluster_search.exceptions import InputException
from cluster_search.resource import ResourceObject, parse_timestamp

POD_DOC: dict[str, Any] = {
    "apiVersion": "v1",
    "kind": "Pod",
    "metadata": {
        "name": "p1",
        "namespace": "ns1",
        "uid": "u1",
        "labels": {"app": "web"},
        "annotations": {"note": "x"},
        "creationTimestamp": "2024-01-02T03:04:05Z",
        "resourceVersion": "42",
        "ownerReferences": [{"kind": "ReplicaSet", "name": "web-abc", "uid": "rs1"}],
    },
    "spec": {"containers": [{"name": "web", "image": "nginx"}]},
    "status": {"phase": "Running"},
}


def test_parse_doc() -> None:
    """Test parsing a raw kubernetes object."""
    obj = ResourceObject.parse_doc(POD_DOC)
    assert obj.kind == "Pod"
    assert obj.api_version == "v1"
    assert obj.name == "p1"
    assert obj.namespace == "ns1"
    assert obj.uid == "u1"
    assert obj.labels == {"app": "web"}
    assert obj.annotations == {"note": "x"}
    assert obj.creation_timestamp == datetime.datetime(
        2024, 1, 2, 3, 4, 5, tzinfo=datetime.timezone.utc
    )
    assert obj.deletion_timestamp is None
    assert obj.resource_version == "42"
    assert obj.owner_references == [
        {"kind": "ReplicaSet", "name": "web-abc", "uid": "rs1"}
    ]
    assert obj.spec == {"containers": [{"name": "web", "image": "nginx"}]}
    assert obj.status == {"phase": "Running"}
    assert str(obj) == "Pod/ns1/p1"


def test_parse_cluster_scoped() -> None:
    """Test parsing an object without a namespace."""
    obj = ResourceObject.parse_doc(
        {"apiVersion": "v1", "kind": "Node", "metadata": {"name": "n1", "uid": "u2"}}
    )
    assert obj.namespace is None
    assert obj.annotations is None
    assert obj.labels == {}
    assert obj.spec is None
    assert obj.status is None
    assert obj.namespaced_name == "n1"
    assert str(obj) == "Node/n1"


@pytest.mark.parametrize(
    ("doc", "match"),
    [
        ({"apiVersion": "v1", "metadata": {"name": "a", "uid": "b"}}, "missing kind"),
        ({"kind": "Pod", "metadata": {"name": "a", "uid": "b"}}, "missing apiVersion"),
        ({"apiVersion": "v1", "kind": "Pod"}, "missing metadata"),
        (
            {"apiVersion": "v1", "kind": "Pod", "metadata": {"uid": "b"}},
            "missing metadata.name",
        ),
        (
            {"apiVersion": "v1", "kind": "Pod", "metadata": {"name": "a"}},
            "missing metadata.uid",
        ),
        (
            {"apiVersion": "v1", "kind": "Pod", "metadata": "p1"},
            "metadata is not a mapping",
        ),
        (["not", "a", "mapping"], "expected a mapping"),
    ],
    ids=["kind", "api-version", "metadata", "name", "uid", "scalar-metadata", "list"],
)
def test_parse_invalid_doc(doc: Any, match: str) -> None:
    """Test parsing objects missing required fields."""
    with pytest.raises(InputException, match=match):
        ResourceObject.parse_doc(doc)


def test_parse_invalid_timestamp() -> None:
    """Test an unparseable timestamp is an input error."""
    with pytest.raises(InputException, match="Invalid timestamp"):
        parse_timestamp("yesterday")
    with pytest.raises(InputException, match="Invalid timestamp"):
        parse_timestamp(1234)
    assert parse_timestamp("") is None
    assert parse_timestamp(None) is None


def test_deep_copy() -> None:
    """Test a copy shares no mutable state with the original."""
    obj = ResourceObject.parse_doc(POD_DOC)
    copied = obj.deep_copy()
    assert copied == obj

    assert copied.annotations is not None
    copied.annotations["extra"] = "y"
    copied.labels["tier"] = "front"
    copied.spec["containers"][0]["image"] = "httpd"

    assert obj.annotations == {"note": "x"}
    assert obj.labels == {"app": "web"}
    assert obj.spec["containers"][0]["image"] == "nginx"
