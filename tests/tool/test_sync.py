"""Tests for the cluster-search `sync` command."""

from pathlib import Path
from typing import Any

import pytest
import yaml

from cluster_search.tool.cluster_search import main

REGISTRY: dict[str, Any] = {
    "apiVersion": "search.karmada.io/v1alpha1",
    "kind": "ResourceRegistry",
    "metadata": {"name": "pods"},
    "spec": {
        "targetCluster": {"clusterNames": ["member-a"]},
        "resourceSelectors": [{"apiVersion": "v1", "kind": "Pod"}],
        "backendStore": {"inMemory": {}},
    },
}

OBJECTS: list[dict[str, Any]] = [
    {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {"name": "p1", "namespace": "ns1", "uid": "u1"},
        "spec": {"nodeName": "node-1"},
    },
    {
        "apiVersion": "v1",
        "kind": "List",
        "items": [
            {
                "apiVersion": "v1",
                "kind": "Pod",
                "metadata": {"name": "p2", "namespace": "ns1", "uid": "u2"},
            },
            {
                "apiVersion": "v1",
                "kind": "Service",
                "metadata": {"name": "s1", "namespace": "ns1", "uid": "u3"},
            },
        ],
    },
]


@pytest.fixture
def registry_file(tmp_path: Path) -> Path:
    path = tmp_path / "registry.yaml"
    path.write_text(yaml.dump(REGISTRY))
    return path


@pytest.fixture
def objects_file(tmp_path: Path) -> Path:
    path = tmp_path / "objects.yaml"
    path.write_text(yaml.dump_all(OBJECTS))
    return path


def test_sync(
    registry_file: Path, objects_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test selected objects are indexed and printed."""
    main(
        [
            "sync",
            "--registry",
            str(registry_file),
            "--cluster",
            "member-a",
            str(objects_file),
        ]
    )
    lines = capsys.readouterr().out.splitlines()
    header = ["OPERATION", "RESOURCE", "COLLECTION", "STATUS", "ERROR"]
    assert lines[0].split() == header
    assert [line.split() for line in lines[1:]] == [
        ["Upsert", "Pod/ns1/p1", "kubernetes-pod", "Synced"],
        ["Upsert", "Pod/ns1/p2", "kubernetes-pod", "Synced"],
    ]


def test_sync_delete(
    registry_file: Path, objects_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test deleting objects that were never indexed is a no-op."""
    main(
        [
            "sync",
            "--registry",
            str(registry_file),
            "--cluster",
            "member-a",
            "--delete",
            str(objects_file),
        ]
    )
    lines = capsys.readouterr().out.splitlines()
    assert [line.split() for line in lines[1:]] == [
        ["Delete", "Pod/ns1/p1", "kubernetes-pod", "Skipped"],
        ["Delete", "Pod/ns1/p2", "kubernetes-pod", "Skipped"],
    ]


def test_sync_other_cluster(
    registry_file: Path, objects_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test objects from clusters without a destination are not indexed."""
    main(
        [
            "sync",
            "--registry",
            str(registry_file),
            "--cluster",
            "member-z",
            str(objects_file),
        ]
    )
    assert capsys.readouterr().out == ""


def test_sync_invalid_object(
    registry_file: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test an object without a uid is an input error."""
    path = tmp_path / "invalid.yaml"
    path.write_text(
        yaml.dump({"apiVersion": "v1", "kind": "Pod", "metadata": {"name": "p1"}})
    )
    with pytest.raises(SystemExit) as exc_info:
        main(["sync", "--registry", str(registry_file), "--cluster", "a", str(path)])
    assert exc_info.value.code == 1
    assert "missing metadata.uid" in capsys.readouterr().err


def test_sync_reports_failed_destinations(
    tmp_path: Path, objects_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test destinations that cannot be initialized fail the command."""
    unreachable = {
        **REGISTRY,
        "metadata": {"name": "search"},
        "spec": {
            "targetCluster": {"clusterNames": ["member-a"]},
            "backendStore": {"openSearch": {"addresses": []}},
        },
    }
    path = tmp_path / "registries.yaml"
    path.write_text(yaml.dump_all([REGISTRY, unreachable]))
    with pytest.raises(SystemExit) as exc_info:
        main(
            [
                "sync",
                "--registry",
                str(path),
                "--cluster",
                "member-a",
                str(objects_file),
            ]
        )
    assert exc_info.value.code == 1

    captured = capsys.readouterr()
    lines = captured.out.splitlines()
    assert lines[0] == (
        "[INIT FAIL]: search/member-a: No OpenSearch addresses configured"
    )
    assert [line.split() for line in lines[2:]] == [
        ["Upsert", "Pod/ns1/p1", "kubernetes-pod", "Synced"],
        ["Upsert", "Pod/ns1/p2", "kubernetes-pod", "Synced"],
    ]
    assert "1 of 2 destinations failed" in captured.err


def test_sync_scalar_metadata(
    registry_file: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test an object with scalar metadata is an input error."""
    path = tmp_path / "invalid.yaml"
    path.write_text(yaml.dump({"apiVersion": "v1", "kind": "Pod", "metadata": "p1"}))
    with pytest.raises(SystemExit) as exc_info:
        main(["sync", "--registry", str(registry_file), "--cluster", "a", str(path)])
    assert exc_info.value.code == 1
    assert "metadata is not a mapping" in capsys.readouterr().err
