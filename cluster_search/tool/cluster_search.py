"""Command line tool for indexing member cluster objects into search backends."""

import argparse
import asyncio
import logging
import sys
import traceback

from cluster_search.exceptions import SearchException
from . import check, sync

_LOGGER = logging.getLogger(__name__)


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Command line utility for indexing cluster objects into search.",
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )

    subparsers = parser.add_subparsers(dest="command", help="Command", required=True)

    check.CheckAction.register(subparsers)
    sync.SyncAction.register(subparsers)
    return parser


def main(argv: list[str] | None = None) -> None:
    """cluster-search command line tool main entry point."""
    parser = _make_parser()
    args = parser.parse_args(argv)

    if args.log_level:
        logging.basicConfig(level=args.log_level)

    action = args.cls()
    try:
        asyncio.run(action.run(**vars(args)))
    except SearchException as err:
        if args.log_level == "DEBUG":
            traceback.print_exc(file=sys.stderr)
        print("cluster-search error: ", err, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
