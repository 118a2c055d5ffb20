"""
Console rendering for the command line.

Results go to stdout, errors to stderr. Styling uses rich markup and is
dropped automatically when output is not a terminal. Everything that came
from the store or the user is escaped before it is put into markup.
"""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.markup import escape

from recordstock.core.db.models import InventoryItem
from recordstock.core.inventory import AlbumGroup, LoadResult, PurchaseResult


def make_consoles(*, color: bool = True) -> tuple[Console, Console]:
    """Return (stdout, stderr) consoles."""
    options = {"highlight": False, "emoji": False, "soft_wrap": True, "no_color": not color}
    return Console(**options), Console(stderr=True, **options)


def bold(value: object) -> str:
    return f"[bold]{escape(str(value))}[/bold]"


def format_album_group(group: AlbumGroup) -> str:
    """
    Artist: <artist name>
    Album: <album title>
    Released: <release year>
    <Format>(<quantity>): <inventory id>
    """
    released = group.release_year if group.release_year is not None else "unknown"
    lines = [
        f"Artist: {escape(group.artist)}",
        f"Album: {escape(group.title)}",
        f"Released: {released}",
    ]
    lines.extend(f"{escape(f.format)}({f.quantity}): {f.id}" for f in group.formats)
    return "\n".join(lines)


def render_groups(console: Console, groups: Sequence[AlbumGroup]) -> None:
    console.print("\n\n".join(format_album_group(g) for g in groups))


def render_no_results(console: Console, field: str, term: str) -> None:
    console.print(f"No matches found for {bold(term)} in {bold(field)}.")


def render_empty_inventory(console: Console) -> None:
    console.print("The inventory is empty.")


def render_load(console: Console, path: str, result: LoadResult) -> None:
    console.print(
        f"Loaded {bold(result.units)} unit(s) in {result.rows} row(s) from {bold(path)} "
        f"({result.artists} new artist(s), {result.albums} new album(s))."
    )


def product_markup(item: InventoryItem) -> str:
    return f"{bold(item.format)} of {bold(item.title)} by {bold(item.artist)}"


def render_purchase(console: Console, result: PurchaseResult) -> None:
    console.print(
        f"Removed {bold(result.quantity)} {product_markup(result.item)} from the inventory."
    )


def render_notice(console: Console, message: str) -> None:
    """Non-fatal problem: a purchase that cannot happen, an unknown id."""
    console.print(f"[yellow]{escape(message)}[/yellow]")


def render_error(console: Console, message: str, *, usage: str | None = None) -> None:
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    if usage:
        console.print(f"Usage: {escape(usage)}")
