"""Command line tool for indexing objects read from files into backend stores."""

import asyncio
import logging
import pathlib
from argparse import (
    ArgumentParser,
    BooleanOptionalAction,
    _SubParsersAction as SubParsersAction,
)
from typing import cast

from cluster_search.backendstore import BackendRegistry, SyncResult
from cluster_search.context import get_trace_collector, trace_context
from cluster_search.exceptions import SearchException
from cluster_search.resource import EventType, ResourceEvent

from .common import add_registry_flags, load_registry, read_objects
from .format import PrintFormatter

_LOGGER = logging.getLogger(__name__)

INIT_FAIL = "[INIT FAIL]"
RESULT_KEYS = ["operation", "resource", "collection", "status", "error"]


def _deliver(
    backends: BackendRegistry, events: list[ResourceEvent]
) -> list[SyncResult]:
    """Deliver the events in order, as a watch would."""
    results = []
    for event in events:
        with trace_context("Dispatch"):
            results.extend(backends.dispatch(event))
    return results


class SyncAction:
    """cluster-search sync action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "sync",
                help="Index objects from YAML files into the backend stores",
                description=(
                    "Deliver an add event (or a delete event with --delete) for "
                    "every object in the files, as observed in the member cluster."
                ),
            ),
        )
        add_registry_flags(args)
        args.add_argument(
            "--cluster",
            help="Name of the member cluster the objects were observed in",
            required=True,
        )
        args.add_argument(
            "--delete",
            help="Remove the objects from the backend stores instead of indexing them",
            action=BooleanOptionalAction,
            default=False,
        )
        args.add_argument(
            "path",
            help="YAML files with kubernetes objects",
            type=pathlib.Path,
            nargs="+",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        registry,
        secrets,
        cluster: str,
        delete: bool,
        path: list[pathlib.Path],
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        objects = await read_objects(path)
        event_type = EventType.DELETED if delete else EventType.ADDED
        events = [
            ResourceEvent(type=event_type, cluster=cluster, obj=obj) for obj in objects
        ]

        backends, destinations = await load_registry(registry, secrets)
        init_failed = [
            (destination, error)
            for destination, error in sorted(destinations.items())
            if error is not None
        ]
        for destination, error in init_failed:
            print(f"{INIT_FAIL}: {destination}: {error}")

        try:
            with get_trace_collector() as collector:
                results = await asyncio.to_thread(_deliver, backends, events)
        finally:
            backends.close()
        _LOGGER.debug(
            "Dispatched %d events in %0.2fs",
            collector.counts["Dispatch"],
            collector.timings["Dispatch"],
        )

        PrintFormatter(RESULT_KEYS).print(
            [
                {
                    "operation": result.operation,
                    "resource": result.resource,
                    "collection": result.collection,
                    "status": result.status,
                    "error": result.error,
                }
                for result in results
            ]
        )
        errors = []
        if init_failed:
            errors.append(
                f"{len(init_failed)} of {len(destinations)} destinations failed"
            )
        if failed := [result for result in results if result.failed]:
            errors.append(f"{len(failed)} of {len(results)} events failed")
        if errors:
            raise SearchException("; ".join(errors))
