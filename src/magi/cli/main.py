"""MAGI CLI entry point."""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from magi.cli.ask import ask_cmd, insights_cmd
from magi.cli.cache import (
    lookup_cmd,
    refresh_cmd,
    stats_cmd,
    top_cmd,
    trending_cmd,
    watch_cmd,
)
from magi.cli.search import context_cmd, corpus_cmd, search_cmd


def _installed_version() -> str:
    try:
        return importlib.metadata.version("magi")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"magi {_installed_version()}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


app = typer.Typer(
    name="magi",
    help=(
        "MAGI: Worldchain DeFi assistant core.\n\n"
        "  magi search   Rank corpus chunks for a question.\n"
        "  magi ask      Answer a question with RAG context + LLM.\n"
        "  magi refresh  Update the protocol cache from DefiLlama."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging."),
    ] = False,
) -> None:
    """MAGI: Worldchain DeFi assistant core."""
    _configure_logging(verbose)


app.command("search")(search_cmd)
app.command("context")(context_cmd)
app.command("corpus")(corpus_cmd)
app.command("ask")(ask_cmd)
app.command("insights")(insights_cmd)
app.command("refresh")(refresh_cmd)
app.command("lookup")(lookup_cmd)
app.command("top")(top_cmd)
app.command("trending")(trending_cmd)
app.command("stats")(stats_cmd)
app.command("watch")(watch_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed MAGI version."""
    typer.echo(f"magi {_installed_version()}")


if __name__ == "__main__":
    app()
