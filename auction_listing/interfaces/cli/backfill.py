"""Recompute lot sort keys for all items."""

from __future__ import annotations

import click
from rich.console import Console

from auction_listing.infrastructure.db.repositories import ListingError
from auction_listing.services.backfill import DEFAULT_BATCH_SIZE, BatchResult

from .context import build_cli_context

console = Console()


@click.command("backfill-lot-keys")
@click.option("--db", "db_path", default=None, help="Path to the SQLite database.")
@click.option(
    "--batch-size",
    type=click.IntRange(min=1),
    default=DEFAULT_BATCH_SIZE,
    show_default=True,
    help="Items per batch.",
)
def backfill_lot_keys(db_path: str | None, batch_size: int) -> None:
    """Recompute lot sort keys for every item, in id-ordered batches."""

    cli_context = build_cli_context(db_path)
    service = cli_context.backfill_service(batch_size)

    def _report(result: BatchResult) -> None:
        console.print(
            f"Processed {result.processed} item(s) up to id {result.last_id}, "
            f"{result.remaining} remaining"
        )

    try:
        total = service.run(on_batch=_report)
        progress = service.progress(last_id=0)
    except ListingError as exc:
        raise click.ClickException(f"Backfill failed: {exc}") from exc

    console.print(
        f"[green]Backfill complete:[/green] {total} item(s) updated "
        f"({progress.total} item(s) in table)"
    )
