"""magi refresh / lookup / top / trending / stats / watch commands.

All of them read the persisted protocol cache (data.cache_file); only
``refresh`` and ``watch`` talk to the provider.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from magi.cache.manager import CacheManager
from magi.cache.models import EntityRecord
from magi.cli.errors import err_empty_cache, err_protocol_not_found, err_refresh_failed
from magi.cli.search import load_cli_config
from magi.formatting import format_tvl
from magi.service import build_cache_manager, build_refresher

console = Console()

_CacheOption = Annotated[
    Path | None,
    typer.Option("--cache", help="Cache file (default: data.cache_file)."),
]


def refresh_cmd(cache: _CacheOption = None) -> None:
    """Fetch fresh protocol data (with retries) and persist the cache."""
    cfg = load_cli_config()
    manager = build_cache_manager(cfg, cache)
    console.print(f"  Refreshing from [cyan]{cfg.provider.base_url}[/]…")
    if not manager.refresh():
        console.print(err_refresh_failed(manager.max_retries))
        _print_stats(manager)
        raise typer.Exit(1)
    console.print(
        f"  [green]✓[/] Cached {len(manager.snapshot.entities)} protocols "
        f"(version {manager.snapshot.version})"
    )
    _print_stats(manager)


def lookup_cmd(
    name: Annotated[str, typer.Argument(help="Protocol name, alias or partial name.")],
    cache: _CacheOption = None,
) -> None:
    """Show the cached record for NAME."""
    cfg = load_cli_config()
    manager = build_cache_manager(cfg, cache)
    record = manager.find(name)
    if record is None:
        console.print(err_protocol_not_found(name))
        raise typer.Exit(1)
    console.print(_record_panel(record))


def top_cmd(
    limit: Annotated[int, typer.Option("--limit", "-n", min=1, help="Rows to show.")] = 10,
    cache: _CacheOption = None,
) -> None:
    """List cached protocols by TVL, largest first."""
    manager = build_cache_manager(load_cli_config(), cache)
    _print_records(manager, manager.top_by_tvl(limit), "Top protocols by TVL")


def trending_cmd(
    limit: Annotated[int, typer.Option("--limit", "-n", min=1, help="Rows to show.")] = 5,
    cache: _CacheOption = None,
) -> None:
    """List cached protocols with the largest 24h change."""
    manager = build_cache_manager(load_cli_config(), cache)
    _print_records(manager, manager.trending(limit), "Trending protocols (24h)")


def stats_cmd(cache: _CacheOption = None) -> None:
    """Show cache version, age and last refresh outcome."""
    manager = build_cache_manager(load_cli_config(), cache)
    _print_stats(manager)


def watch_cmd(cache: _CacheOption = None) -> None:
    """Refresh now and then every refresh.interval_hours until Ctrl-C."""
    cfg = load_cli_config()
    manager = build_cache_manager(cfg, cache)
    refresher = build_refresher(cfg, manager)
    refresher.start()
    console.print(
        f"  Refreshing every {cfg.refresh.interval_hours:g}h. [dim]Press Ctrl-C to stop.[/]"
    )
    try:
        while refresher.running:
            time.sleep(1)
    except KeyboardInterrupt:
        console.print("  [dim]Stopping…[/]")
    finally:
        refresher.stop(timeout=5)


# ------------------------------------------------------------------
# Rendering
# ------------------------------------------------------------------


def _record_panel(record: EntityRecord) -> Panel:
    lines = [
        f"[bold]{record.name}[/]",
        record.description,
        "",
        f"  Category:   {record.category}",
        f"  TVL:        {format_tvl(record.tvl)}",
        f"  24h change: {record.change_1d:+.2f}%",
        f"  7d change:  {record.change_7d:+.2f}%",
        f"  Chains:     {record.chains}",
        f"  Website:    {record.website}",
    ]
    if record.launched:
        lines.append(f"  Launched:   {record.launched}")
    lines.append(f"  [dim]Source: {record.source}[/]")
    return Panel("\n".join(lines), expand=False)


def _print_records(manager: CacheManager, records: list[EntityRecord], title: str) -> None:
    if not records:
        console.print(err_empty_cache())
        return
    table = Table(title=title)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Protocol", style="cyan")
    table.add_column("Category")
    table.add_column("TVL", justify="right")
    table.add_column("24h", justify="right")
    table.add_column("Source", style="dim")
    for i, record in enumerate(records, 1):
        change = f"{record.change_1d:+.2f}%"
        color = "green" if record.change_1d >= 0 else "red"
        table.add_row(
            str(i),
            record.name,
            record.category,
            format_tvl(record.tvl),
            f"[{color}]{change}[/]",
            record.source,
        )
    console.print(table)
    console.print(f"  [dim]Cache version {manager.snapshot.version}[/]")


def _print_stats(manager: CacheManager) -> None:
    stats = manager.stats()
    age = stats["cache_age_ms"]
    status = "[green]ok[/]" if stats["refresh_success"] else "[red]failed[/]"
    lines = [
        f"  Protocols:      {stats['protocol_count']}",
        f"  Version:        {stats['version']}",
        f"  Last updated:   {stats['last_updated'] or 'never'}",
        f"  Last attempt:   {stats['last_refresh_attempt'] or 'never'}",
        f"  Last refresh:   {status}",
        f"  Age:            {age / 60000:.1f} min" if age is not None else "  Age:            -",
    ]
    console.print(Panel("\n".join(lines), title="[bold]Protocol cache[/]", expand=False))
