"""Command line tool for checking connectivity to every backend store."""

import logging
from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
from typing import cast

from cluster_search.exceptions import SearchException

from .common import add_registry_flags, load_registry

_LOGGER = logging.getLogger(__name__)

FAIL = "[CHECK FAIL]"
OK = "[CHECK OK]"


class CheckAction:
    """cluster-search check action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "check",
                help="Initialize the backend stores of ResourceRegistry objects",
                description=(
                    "Validate the configuration of every destination and verify the "
                    "backend is reachable."
                ),
            ),
        )
        add_registry_flags(args)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        registry,
        secrets,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        backends, results = await load_registry(registry, secrets)
        backends.close()

        failed = 0
        for destination, error in sorted(results.items()):
            if error is not None:
                failed += 1
                print(f"{FAIL}: {destination}: {error}")
            else:
                print(f"{OK}: {destination}")
        if failed:
            raise SearchException(f"{failed} of {len(results)} destinations failed")
