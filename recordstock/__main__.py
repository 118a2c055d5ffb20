"""
recordstock - Entry Point

Run with: python -m recordstock <command> ...

    load <file>               add albums from a .pipe or .csv file
    search <field> <term>     fuzzy search one field (id, artist, title, ...)
    purchase <id> [-q N]      remove units of one inventory record
    list [--all]              show the whole inventory
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path
from typing import NoReturn

from rich.console import Console

from recordstock import __version__
from recordstock.config import AppConfig, load_config
from recordstock.console import (
    make_consoles,
    render_empty_inventory,
    render_error,
    render_groups,
    render_load,
    render_no_results,
    render_notice,
    render_purchase,
)
from recordstock.core import (
    BusinessRuleError,
    NotFoundError,
    StorageError,
    UsageError,
    ValidationError,
)
from recordstock.core.db.ordering import search_fields
from recordstock.core.inventory import RecordInventory
from recordstock.core.inventory_db import InventoryDb

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_VALIDATION = 1
EXIT_USAGE = 2
EXIT_STORAGE = 3
EXIT_INTERRUPTED = 130

Handler = Callable[[argparse.Namespace, RecordInventory, AppConfig, Console], Awaitable[int]]


class CommandParser(argparse.ArgumentParser):
    """ArgumentParser that raises `UsageError` instead of exiting."""

    def error(self, message: str) -> NoReturn:
        raise UsageError(message, usage=self.format_usage().strip().removeprefix("usage: "))


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def build_parser() -> CommandParser:
    parser = CommandParser(
        prog="recordstock",
        description="recordstock - inventory manager for a music collection",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )

    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Path to the inventory store (default: from config)",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a recordstock.toml config file",
    )

    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    commands = parser.add_subparsers(dest="command", metavar="command", required=True)

    load = commands.add_parser("load", help="Load albums from a .pipe or .csv file")
    load.add_argument("file", type=Path, help="Inventory file")

    search = commands.add_parser("search", help="Search the inventory")
    search.add_argument("field", help=f"Field to search: {', '.join(search_fields())}")
    search.add_argument("term", help="Text to look for (partial matches count)")

    purchase = commands.add_parser("purchase", help="Remove units of an inventory record")
    purchase.add_argument("id", type=int, help="Inventory id (as shown by search)")
    purchase.add_argument(
        "-q",
        "--quantity",
        type=int,
        default=None,
        help="Units to remove (default: from config, normally 1)",
    )

    listing = commands.add_parser("list", help="List the inventory")
    listing.add_argument(
        "--all",
        dest="include_empty",
        action="store_true",
        help="Include records that are out of stock",
    )

    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    return build_parser().parse_args(argv)


async def cmd_load(
    args: argparse.Namespace, inventory: RecordInventory, config: AppConfig, out: Console
) -> int:
    result = await inventory.load(args.file)
    render_load(out, str(args.file), result)
    return EXIT_OK


async def cmd_search(
    args: argparse.Namespace, inventory: RecordInventory, config: AppConfig, out: Console
) -> int:
    groups = await inventory.search(args.field, args.term)
    if groups:
        render_groups(out, groups)
    else:
        render_no_results(out, args.field.lower(), args.term)
    return EXIT_OK


async def cmd_purchase(
    args: argparse.Namespace, inventory: RecordInventory, config: AppConfig, out: Console
) -> int:
    quantity = args.quantity if args.quantity is not None else config.purchase.default_quantity
    try:
        result = await inventory.purchase(args.id, quantity)
    except (BusinessRuleError, NotFoundError) as e:
        render_notice(out, str(e))
        return EXIT_OK
    render_purchase(out, result)
    return EXIT_OK


async def cmd_list(
    args: argparse.Namespace, inventory: RecordInventory, config: AppConfig, out: Console
) -> int:
    groups = await inventory.list_albums(include_empty=args.include_empty)
    if groups:
        render_groups(out, groups)
    else:
        render_empty_inventory(out)
    return EXIT_OK


COMMANDS: dict[str, Handler] = {
    "load": cmd_load,
    "search": cmd_search,
    "purchase": cmd_purchase,
    "list": cmd_list,
}


async def run_command(args: argparse.Namespace, config: AppConfig, out: Console) -> int:
    """Open the store for the duration of one command and dispatch it."""
    handler = COMMANDS[args.command]
    async with InventoryDb(config.store.path) as db:
        return await handler(args, RecordInventory(db=db), config, out)


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the application."""
    out, err = make_consoles()

    try:
        args = parse_args(argv)
    except UsageError as e:
        render_error(err, str(e), usage=e.usage)
        return EXIT_USAGE

    setup_logging(verbose=args.verbose)

    try:
        config = load_config(args.config, db_override=args.db)
        out, err = make_consoles(color=config.display.color and not args.no_color)
        logger.debug("Using store %s", config.store.path)
        return asyncio.run(run_command(args, config, out))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return EXIT_INTERRUPTED
    except UsageError as e:
        render_error(err, str(e), usage=e.usage)
        return EXIT_USAGE
    except ValidationError as e:
        render_error(err, str(e))
        return EXIT_VALIDATION
    except StorageError as e:
        logger.error("Fatal storage error: %s", e)
        render_error(err, str(e))
        return EXIT_STORAGE


if __name__ == "__main__":
    sys.exit(main())
