"""Paginated listing of auctions and items in status order."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import click
from rich.console import Console
from rich.table import Table

from auction_listing.domain.models import ListingKind, SortOrder
from auction_listing.infrastructure.db.repositories import ListingError
from auction_listing.services.dto import EnrichedRow, ListingPage

from .context import build_cli_context

console = Console()

_STATUS_STYLES = {"running": "green", "upcoming": "cyan", "expired": "dim"}


def _format_timestamp(value: int) -> str:
    if not value:
        return "-"
    return datetime.fromtimestamp(value, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")


def _render_table(page: ListingPage) -> Table:
    table = Table(title=f"{page.kind.capitalize()} - page {page.page}/{page.pages}")
    table.add_column("ID", justify="right", style="bold")
    if page.kind == ListingKind.ITEMS.value:
        table.add_column("Lot")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Starts (UTC)")
    table.add_column("Ends (UTC)")
    table.add_column("Location")
    for row in page.rows:
        table.add_row(*_row_cells(page.kind, row))
    return table


def _row_cells(kind: str, row: EnrichedRow) -> list[str]:
    style = _STATUS_STYLES.get(row.status, "")
    cells = [str(row.id)]
    if kind == ListingKind.ITEMS.value:
        cells.append(row.lot_no or "")
    cells.extend(
        [
            row.title or "(no title)",
            f"[{style}]{row.status}[/{style}]" if style else row.status,
            _format_timestamp(row.starts_at),
            _format_timestamp(row.ends_at),
            row.location or "",
        ]
    )
    return cells


@click.command("list")
@click.option("--db", "db_path", default=None, help="Path to the SQLite database.")
@click.option(
    "--kind",
    type=click.Choice([kind.value for kind in ListingKind]),
    default=ListingKind.AUCTIONS.value,
    show_default=True,
    help="Which collection to list.",
)
@click.option("--page", type=int, default=1, show_default=True, help="Page number.")
@click.option("--per-page", type=int, default=None, help="Rows per page (1-50).")
@click.option(
    "--sort",
    type=click.Choice([option.value for option in SortOrder]),
    default=SortOrder.ENDING_SOON.value,
    show_default=True,
    help="Listing order.",
)
@click.option("--owner", "owner_id", type=int, default=None, help="Filter by owner id.")
@click.option(
    "--parent", "parent_id", type=int, default=None, help="Filter items by auction id."
)
@click.option("--country", default=None, help="Two-letter country code.")
@click.option("--subdivision", default=None, help="Subdivision code, e.g. NL:NH.")
@click.option("--search", default=None, help="Substring to match in titles.")
@click.option(
    "--ids", default=None, help="Comma-separated ids to show in this exact order."
)
@click.option("--json-output", is_flag=True, help="Output the page as JSON.")
def list_cmd(
    db_path: str | None,
    kind: str,
    page: int,
    per_page: int | None,
    sort: str,
    owner_id: int | None,
    parent_id: int | None,
    country: str | None,
    subdivision: str | None,
    search: str | None,
    ids: str | None,
    json_output: bool,
) -> None:
    """List auctions or items: running first, then upcoming, then expired."""

    cli_context = build_cli_context(db_path)
    service = cli_context.listing_service()
    filters = {
        "sort": sort,
        "owner_id": owner_id,
        "parent_id": parent_id,
        "country": country,
        "subdivision": subdivision,
        "search": search,
        "ids": ids,
    }
    try:
        result = service.list_sync(kind, filters, page=page, per_page=per_page)
    except ListingError as exc:
        raise click.ClickException(f"Listing failed: {exc}") from exc

    if json_output:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if not result.rows:
        console.print(
            f"[yellow]No {kind} on page {result.page} "
            f"({result.total} matching, {result.pages} page(s)).[/yellow]"
        )
        return

    console.print(_render_table(result))
    summary = f"{result.total} matching, page {result.page} of {result.pages}"
    if result.counts:
        summary += " (" + ", ".join(f"{k}={v}" for k, v in result.counts.items()) + ")"
    console.print(summary)
