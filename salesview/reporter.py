from __future__ import annotations

from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from salesview.domain.models import FilterOptions


def _format_mb(value: Optional[int]) -> str:
    if not value:
        return "N/A"
    return f"{value / (1024 * 1024):.2f}"


def print_probe_results(results: List[Dict[str, Any]], console: Optional[Console] = None) -> None:
    """
    Render strategy probe results as a rich table, fastest first.
    """
    console = console or Console()

    if not results:
        console.print("[yellow]No results to display.[/yellow]")
        return

    offset = results[0].get("offset", 0)
    table = Table(
        title=f"SalesView Strategy Probe\n[dim]Offset: {offset:,}[/dim]",
        box=box.ROUNDED,
        caption="Sorted by Duration (ascending)",
    )

    table.add_column("Strategy", style="cyan", no_wrap=True)
    table.add_column("Rows", justify="right", style="magenta")
    table.add_column("First ID", justify="right", style="blue")
    table.add_column("Last ID", justify="right", style="blue")
    table.add_column("Duration (ms)", justify="right", style="bold green")
    table.add_column("Rows/s", justify="right", style="green")
    table.add_column("Peak Memory (MB)", justify="right", style="yellow")
    table.add_column("CPU %", justify="right", style="red")

    for res in sorted(results, key=lambda r: r.get("duration_seconds", 0.0)):
        cpu = res.get("cpu_percent")
        throughput = res.get("rows_per_sec")
        table.add_row(
            res.get("strategy", "Unknown"),
            f"{res.get('rows', 0):,}",
            str(res.get("first_id", "")),
            str(res.get("last_id", "")),
            f"{res.get('duration_seconds', 0.0) * 1000:,.1f}",
            "N/A" if throughput is None else f"{throughput:,.0f}",
            _format_mb(res.get("peak_rss_bytes")),
            "N/A" if cpu is None else f"{cpu:.1f}",
        )

    console.print(table)


def print_filter_options(options: FilterOptions, console: Optional[Console] = None) -> None:
    """Render a filter-options snapshot as a two-column table."""
    console = console or Console()
    table = Table(title="SalesView Filter Options", box=box.ROUNDED)
    table.add_column("Facet", style="cyan", no_wrap=True)
    table.add_column("Values", style="green")

    table.add_row("Customer regions", ", ".join(options.customer_regions) or "-")
    table.add_row("Genders", ", ".join(options.genders) or "-")
    table.add_row("Product categories", ", ".join(options.product_categories) or "-")
    table.add_row("Payment methods", ", ".join(options.payment_methods) or "-")
    table.add_row("Tags", f"{len(options.tags)} sampled")
    table.add_row("Age range", f"{options.age_range.min} - {options.age_range.max}")

    console.print(table)


__all__ = ["print_filter_options", "print_probe_results"]
