"""Print in-process metrics."""

from __future__ import annotations

import click
from rich.console import Console

from auction_listing.infrastructure.observability import format_prometheus

console = Console()


@click.command("metrics")
def metrics_cmd() -> None:
    """Print metrics collected by this process in Prometheus text format."""

    text = format_prometheus()
    if not text:
        console.print("[yellow]No metrics recorded in this process.[/yellow]")
        return
    click.echo(text)
