"""CLI interface for the plugin directory filters."""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from plugin_filters.app import Application, build_application
from plugin_filters.errors import PluginFiltersError
from plugin_filters.maintenance import run_cleanup, warm_popular_plugins
from plugin_filters.models.model_request import FilterRequest

app = typer.Typer(
    name="wppd-filters",
    help="WordPress plugin directory filters - search, score and cache plugin data",
)

console = Console()

CLI_IDENTITY = "cli"

T = TypeVar("T")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _run(work: Callable[[Application], Awaitable[T]]) -> T:
    """Build the application, run one coroutine against it and close it."""

    async def runner() -> T:
        application = build_application()
        try:
            return await work(application)
        finally:
            await application.aclose()

    try:
        return asyncio.run(runner())
    except PluginFiltersError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e


def _health_style(color: str) -> str:
    """Rich style for a health colour band."""
    return {"green": "green", "light-green": "bright_green", "orange": "yellow"}.get(color, "red")


def _truncate(text: str, max_len: int = 60) -> str:
    """Truncate text with ellipsis."""
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def _print_json(data: Any) -> None:
    console.print_json(json.dumps(data, default=str))


@app.command()
def search(
    term: str = typer.Argument("", help="Search term"),
    installs: str = typer.Option("all", "--installs", "-i", help="Install range (0-1k, 1k-10k, ...)"),
    updated: str = typer.Option("all", "--updated", "-u", help="Update timeframe (last_month, ...)"),
    min_rating: float = typer.Option(0.0, "--min-rating", help="Minimum usability rating (0-5)"),
    min_health: int = typer.Option(0, "--min-health", help="Minimum health score (0-100)"),
    sort_by: str = typer.Option("relevance", "--sort", "-s", help="Sort field"),
    direction: str = typer.Option("desc", "--direction", "-d", help="Sort direction (asc, desc)"),
    page: int = typer.Option(1, "--page", "-p", help="Page number"),
    per_page: int = typer.Option(24, "--per-page", help="Results per page (max 48)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Search the catalog and show scored, filtered plugins."""
    _configure_logging(verbose)

    try:
        request = FilterRequest.from_payload(
            {
                "search_term": term,
                "installation_range": installs,
                "update_timeframe": updated,
                "usability_rating": min_rating,
                "health_score": min_health,
                "sort_by": sort_by,
                "sort_direction": direction,
                "page": page,
                "per_page": per_page,
            }
        )
    except PluginFiltersError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    result = _run(lambda application: application.orchestrator.execute(request, CLI_IDENTITY))

    if not result.plugins:
        console.print("[yellow]No plugins found.[/yellow]")
        return

    pagination = result.pagination
    table = Table(
        title=f"Plugins for '{term}' (page {pagination.current_page}/{pagination.total_pages}, "
        f"{pagination.total_results} results)"
    )
    table.add_column("Slug", style="cyan")
    table.add_column("Installs", justify="right", style="magenta")
    table.add_column("Rating", justify="right")
    table.add_column("Usability", justify="right")
    table.add_column("Health", justify="right")
    table.add_column("Updated", style="dim")
    table.add_column("Description", style="dim")

    for plugin in result.plugins:
        style = _health_style(plugin.health_color.value)
        table.add_row(
            plugin.slug,
            f"{plugin.active_installs:,}",
            f"{plugin.rating:.1f}",
            f"{plugin.usability_rating:.1f}",
            f"[{style}]{plugin.health_score}[/{style}]",
            plugin.last_updated.isoformat() if plugin.last_updated else "unknown",
            _truncate(plugin.description, 40),
        )

    console.print(table)


@app.command()
def rating(
    slug: str = typer.Argument(..., help="Plugin slug"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Show the usability rating and health score of one plugin."""
    _configure_logging(verbose)

    data = _run(lambda application: application.orchestrator.rate_plugin(slug, CLI_IDENTITY))
    style = _health_style(data["health_color"])

    console.print(f"\n[bold]{data['plugin_slug']}[/bold]")
    console.print(f"  Usability: {data['usability_rating']:.1f}/5")
    console.print(f"  Health:    [{style}]{data['health_score']}/100[/{style}] - {data['health_description']}")

    table = Table(title="Health Components")
    table.add_column("Component", style="cyan")
    table.add_column("Raw", justify="right")
    table.add_column("Weight", justify="right")
    for component in data["calculation_breakdown"]["health"]["components"]:
        raw = component["raw"]
        table.add_row(
            component["name"],
            "absent" if raw is None else f"{raw:.2f}",
            f"{component['weight']}%",
        )
    console.print(table)


@app.command()
def request(
    action: str = typer.Argument(..., help="Action name (filter, sort, rating, clear_cache, cache_stats, cleanup)"),
    body: str = typer.Argument("{}", help="JSON request body"),
    identity: str = typer.Option(CLI_IDENTITY, "--identity", help="Caller identity for rate limiting"),
) -> None:
    """Dispatch a raw JSON request and print the JSON response."""
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as e:
        console.print("[red]Error:[/red] Request body is not valid JSON.")
        raise typer.Exit(1) from e

    status, response = _run(lambda application: application.router.dispatch(action, payload, identity))

    _print_json(response)
    if status != 200:
        raise typer.Exit(1)


@app.command("cache-stats")
def cache_stats() -> None:
    """Show durable cache statistics."""

    async def work(application: Application) -> dict[str, Any]:
        return application.orchestrator.cache_stats()

    stats = _run(work)

    table = Table(title=f"Cache Statistics (fast tier: {stats['fast_tier']})")
    table.add_column("Scope", style="cyan")
    table.add_column("Entries", justify="right", style="magenta")
    table.add_column("Total bytes", justify="right")
    table.add_column("Avg bytes", justify="right")
    for scope, data in stats["by_scope"].items():
        table.add_row(scope, str(data["count"]), f"{data['total_bytes']:,}", f"{data['avg_bytes']:,}")
    table.add_row("[bold]total[/bold]", str(stats["count"]), f"{stats['total_bytes']:,}", "")

    console.print(table)
    console.print(f"Expired entries awaiting cleanup: {stats['expired']}")


@app.command("cache-clear")
def cache_clear(
    scope: str = typer.Argument("all", help="Scope to clear (all, meta, scores, search, api, ratelimit)"),
) -> None:
    """Clear cached entries."""

    async def work(application: Application) -> dict[str, Any]:
        return application.orchestrator.clear_cache(scope)

    result = _run(work)
    console.print(f"[green]Cleared {result['cleared']} entries from scope '{scope}'[/green]")


@app.command("cache-cleanup")
def cache_cleanup(
    limit: int = typer.Option(1000, "--limit", "-l", help="Maximum expired entries to remove"),
) -> None:
    """Remove expired cache entries and rate-limit counters."""

    async def work(application: Application) -> dict[str, int]:
        return run_cleanup(application.cache, limit)

    result = _run(work)
    console.print(
        f"[green]Removed {result['entries']} expired entries and {result['counters']} counters[/green]"
    )


@app.command("warm-cache")
def warm_cache(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Pre-fetch and score popular plugins."""
    _configure_logging(verbose)

    warmed = _run(lambda application: warm_popular_plugins(application.orchestrator))
    if warmed:
        console.print(f"[green]Warmed {len(warmed)} plugins:[/green] {', '.join(warmed)}")
    else:
        console.print("[yellow]Nothing to warm; popular plugins are already cached.[/yellow]")


if __name__ == "__main__":
    app()
