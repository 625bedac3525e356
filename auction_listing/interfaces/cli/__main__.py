"""Entry point for running the listing CLI.

This module defines a top-level Click group that aggregates all subcommands
defined in the ``auction_listing.interfaces.cli`` package. Executing
``python -m auction_listing.interfaces.cli`` invokes this group.
"""

import logging

import click

from auction_listing.infrastructure.observability import configure_logging

from .backfill import backfill_lot_keys
from .listing import list_cmd
from .metrics import metrics_cmd


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--verbose/--no-verbose",
    default=False,
    help="Enable debug logging.",
)
def cli(verbose: bool) -> None:
    """Status-partitioned auction and item listings."""
    configure_logging(level=logging.DEBUG if verbose else logging.WARNING)


cli.add_command(list_cmd)
cli.add_command(backfill_lot_keys)
cli.add_command(metrics_cmd)


if __name__ == "__main__":
    cli()
