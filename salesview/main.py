from __future__ import annotations

import asyncio
import json
import sys
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

import typer
import uvicorn

from salesview.config import get_settings
from salesview.domain.models import PageRequest
from salesview.infrastructure.db_factory import PoolManager
from salesview.infrastructure.store import PostgresSalesStore
from salesview.paginator import available_strategies, probe_strategies
from salesview.reporter import print_filter_options, print_probe_results
from salesview.service import SalesService
from salesview.strategies.abstract import StrategyKind
from salesview.utils.logging import configure_logging

app = typer.Typer(help="SalesView CLI.")

T = TypeVar("T")


async def _with_service(action: Callable[[SalesService], Awaitable[T]]) -> T:
    settings = get_settings()
    async with PoolManager(settings) as pool:
        store = PostgresSalesStore(
            pool, table=settings.db_table, estimate_timeout_ms=settings.count_timeout_ms
        )
        return await action(SalesService(store, settings))


def _query_params(
    page: int,
    limit: Optional[int],
    sort_by: str,
    sort_order: Optional[str],
    search: str,
    filters: List[str],
) -> Dict[str, Any]:
    """Turn CLI options into the same raw parameters the HTTP layer receives."""
    params: Dict[str, Any] = {"page": page, "sortBy": sort_by, "search": search}
    if limit is not None:
        params["limit"] = limit
    if sort_order:
        params["sortOrder"] = sort_order
    for item in filters:
        key, sep, value = item.partition("=")
        if not sep:
            raise typer.BadParameter(f"Expected key=value, got '{item}'", param_hint="--filter")
        params[key.strip()] = value
    return params


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} "
        f"table={settings.db_table} | page_size={settings.default_page_size} "
        f"anchor_threshold={settings.anchor_threshold} window_threshold={settings.window_threshold} "
        f"filter_ttl={settings.filter_cache_ttl_seconds}s"
    )
    typer.echo("Strategies: " + ", ".join(available_strategies()))


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default from settings)."),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port (default from settings)."),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes."),
) -> None:
    """
    Serve the HTTP API with uvicorn.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    uvicorn.run(
        "salesview.api.app:create_app",
        factory=True,
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_config=None,
    )


@app.command()
def page(
    number: int = typer.Option(1, "--page", help="Page number (1-based)."),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Page size."),
    sort_by: str = typer.Option("id", "--sort-by", help="Sort key (id, date, quantity, ...)."),
    sort_order: Optional[str] = typer.Option(None, "--sort-order", help="asc or desc."),
    search: str = typer.Option("", "--search", "-q", help="Free-text search token."),
    filters: List[str] = typer.Option(
        [], "--filter", "-f", help="Filter as key=value, e.g. customerRegion=North,East."
    ),
    optimized: bool = typer.Option(False, "--optimized", help="Use the optimized path."),
) -> None:
    """
    Fetch one page and print it as JSON.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    request = PageRequest.from_query(
        _query_params(number, limit, sort_by, sort_order, search, filters),
        default_limit=settings.default_page_size,
        optimized=optimized,
    )
    result = asyncio.run(_with_service(lambda service: service.get_page(request)))
    body = {
        "data": result["records"],
        "pagination": result["pagination"].model_dump(by_alias=True),
    }
    typer.echo(json.dumps(body, indent=2, default=str))


@app.command()
def filters(
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table."),
) -> None:
    """
    Compute the filter options and print them.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    options = asyncio.run(_with_service(lambda service: service.filter_cache.force_refresh()))
    if as_json:
        typer.echo(json.dumps(options.model_dump(mode="json", by_alias=True), indent=2))
    else:
        print_filter_options(options)


@app.command()
def probe(
    number: int = typer.Option(50_001, "--page", help="Page number to probe."),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Page size."),
    sort_order: str = typer.Option("desc", "--sort-order", help="asc or desc."),
    strategy: str = typer.Option(
        "all",
        "--strategy",
        "-s",
        help="Strategy to probe (e.g., direct_offset, anchor_range, aggregated_window, keyset, all).",
    ),
    last_id: Optional[int] = typer.Option(None, "--last-id", help="Cursor for the keyset strategy."),
) -> None:
    """
    Time each retrieval strategy on the same page and print a comparison table.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    if strategy == "list":
        typer.echo("Available strategies: " + ", ".join(available_strategies()))
        return

    kinds = None
    if strategy != "all":
        try:
            kinds = [StrategyKind(strategy)]
        except ValueError:
            raise typer.BadParameter(
                f"Unknown strategy '{strategy}'. Available: {', '.join(available_strategies())}",
                param_hint="--strategy",
            )

    params: Dict[str, Any] = {"page": number, "sortOrder": sort_order, "lastId": last_id}
    if limit is not None:
        params["limit"] = limit
    request = PageRequest.from_query(params, default_limit=settings.default_page_size)

    typer.echo(f"Probing page={request.page} (offset={request.offset:,}, limit={request.limit}).")
    results = asyncio.run(
        _with_service(lambda service: probe_strategies(service.paginator, request, kinds))
    )
    print_probe_results(results)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
