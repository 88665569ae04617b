"""Shared helpers for loading registries, secrets and objects from files."""

from argparse import ArgumentParser
import asyncio
import logging
import pathlib
from typing import Any

import aiofiles
import yaml

from cluster_search.backendstore import BackendRegistry, Destination
from cluster_search.config import ResourceRegistry, read_resource_registries
from cluster_search.exceptions import InputException, SearchException
from cluster_search.resource import ResourceObject
from cluster_search.secret import InMemorySecretStore

_LOGGER = logging.getLogger(__name__)

LIST_KIND = "List"


def add_registry_flags(args: ArgumentParser) -> None:
    """Add flags for the files declaring backend destinations."""
    args.add_argument(
        "--registry",
        help="YAML file with ResourceRegistry objects declaring backend stores",
        type=pathlib.Path,
        required=True,
    )
    args.add_argument(
        "--secrets",
        help="YAML file with Secret objects referenced by the backend stores",
        type=pathlib.Path,
        action="append",
        default=None,
    )


async def _read_docs(path: pathlib.Path) -> list[dict[str, Any]]:
    async with aiofiles.open(str(path)) as input_file:
        content = await input_file.read()
    try:
        docs = list(yaml.safe_load_all(content))
    except yaml.YAMLError as err:
        raise InputException(f"File {path} failed to parse as yaml: {err}") from err
    results = []
    for doc in docs:
        if doc is None:
            continue
        if not isinstance(doc, dict):
            raise InputException(f"File {path} contains a non-mapping document: {doc}")
        results.append(doc)
    return results


async def read_secrets(paths: list[pathlib.Path] | None) -> InMemorySecretStore:
    """Read Secret objects into a secret store."""
    store = InMemorySecretStore()
    for path in paths or []:
        for doc in await _read_docs(path):
            store.add_doc(doc)
    return store


async def read_objects(paths: list[pathlib.Path]) -> list[ResourceObject]:
    """Read resource objects, expanding `List` objects into their items."""
    objects = []
    for path in paths:
        for doc in await _read_docs(path):
            if doc.get("kind") == LIST_KIND:
                items = doc.get("items") or []
            else:
                items = [doc]
            objects.extend(ResourceObject.parse_doc(item) for item in items)
    _LOGGER.debug("Read %d objects from %d files", len(objects), len(paths))
    return objects


async def load_registry(
    registry_path: pathlib.Path, secret_paths: list[pathlib.Path] | None
) -> tuple[BackendRegistry, dict[Destination, SearchException | None]]:
    """Create a BackendRegistry with the stores declared in the file."""
    resource_registries: list[ResourceRegistry] = await read_resource_registries(
        registry_path
    )
    if not resource_registries:
        raise InputException(f"No ResourceRegistry objects found in {registry_path}")
    backends = BackendRegistry(secret_store=await read_secrets(secret_paths))
    results: dict[Destination, SearchException | None] = {}
    for resource_registry in resource_registries:
        results.update(await asyncio.to_thread(backends.apply, resource_registry))
    return backends, results
