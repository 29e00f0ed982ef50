"""
Store CLI tool for Slowpost.

This tool inspects the document/link store selected by the environment:
- init: Connect and ensure the schema exists
- get: Print one document
- list: Print every document in a collection
- children / parents: Print links from either endpoint

Usage:
    slowpost-store init
    slowpost-store get profiles ada
    slowpost-store list groups
    slowpost-store children members writers
    slowpost-store parents members ada

Invariants:
    - Output is JSON on stdout; diagnostics go to stderr
    - Configuration errors exit with status 1 before any query runs
    - The adapter is always closed before exit

How to change safely:
    - Add new commands, don't modify existing ones
    - Keep output format stable for scripts
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

import json_log_formatter

from ..adapters import DbAdapter, open_db_adapter
from ..config import StoreConfig

logger = logging.getLogger(__name__)


def setup_logging(config: StoreConfig) -> None:
    """Configure logging based on configuration.

    Args:
        config: Store configuration
    """
    level = getattr(logging, config.observability.log_level.upper(), logging.INFO)

    if config.observability.log_format == "json":
        formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    # Reduce noise from libraries
    logging.getLogger("libsql_client").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


class StoreCLI:
    """CLI commands over an open adapter.

    Each command returns the JSON-serializable value to print, or None when
    there is nothing to print.

    Example:
        >>> cli = StoreCLI(adapter)
        >>> await cli.get("profiles", "ada")
        {'username': 'ada', ...}
    """

    def __init__(self, adapter: DbAdapter) -> None:
        self.adapter = adapter

    async def get(self, collection: str, key: str) -> Any:
        return await self.adapter.get_document(collection, key)

    async def list_documents(self, collection: str) -> list[dict[str, Any]]:
        entries = await self.adapter.get_all_documents(collection)
        return [{"key": entry.key, "data": entry.data} for entry in entries]

    async def children(self, collection: str, parent_key: str) -> list[dict[str, Any]]:
        return await self.adapter.get_child_links(collection, parent_key)

    async def parents(self, collection: str, child_key: str) -> list[dict[str, Any]]:
        return await self.adapter.get_parent_links(collection, child_key)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Slowpost document/link store tool")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init", help="Connect and ensure the schema exists")

    get_parser = subparsers.add_parser("get", help="Print one document")
    get_parser.add_argument("collection")
    get_parser.add_argument("key")

    list_parser = subparsers.add_parser("list", help="Print all documents in a collection")
    list_parser.add_argument("collection")

    children_parser = subparsers.add_parser("children", help="Print links under a parent key")
    children_parser.add_argument("collection")
    children_parser.add_argument("parent_key")

    parents_parser = subparsers.add_parser("parents", help="Print links pointing at a child key")
    parents_parser.add_argument("collection")
    parents_parser.add_argument("child_key")

    return parser


async def run(args: argparse.Namespace, config: StoreConfig) -> int:
    """Execute a parsed command. Returns the process exit code."""
    async with open_db_adapter(config) as adapter:
        cli = StoreCLI(adapter)

        if args.command == "init":
            print(f"Store ready ({config.backend.value})", file=sys.stderr)
            return 0

        if args.command == "get":
            document = await cli.get(args.collection, args.key)
            if document is None:
                print(f"Document not found: {args.collection}/{args.key}", file=sys.stderr)
                return 1
            output: Any = document
        elif args.command == "list":
            output = await cli.list_documents(args.collection)
        elif args.command == "children":
            output = await cli.children(args.collection, args.parent_key)
        else:
            output = await cli.parents(args.collection, args.child_key)

    print(json.dumps(output, indent=2, sort_keys=True))
    return 0


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the store tool."""
    args = build_parser().parse_args(argv)

    try:
        config = StoreConfig.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config)
    config.log_config()

    sys.exit(asyncio.run(run(args, config)))


if __name__ == "__main__":
    main()
