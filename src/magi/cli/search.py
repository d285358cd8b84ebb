"""magi search / context / corpus commands.

Usage:
  magi search "compare Morpho and Uniswap" [--limit 3] [--corpus DIR]
  magi context "top protocols on Worldchain"
  magi corpus [--corpus DIR]
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from magi.cli.errors import err_config, err_no_corpus
from magi.config import ConfigError, MagiConfig, load_config
from magi.rag.retriever import SimpleRAG
from magi.service import build_rag

console = Console()

_PREVIEW_CHARS = 120


def search_cmd(
    query: Annotated[str, typer.Argument(help="Free-text question or keywords.")],
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-n", min=1, help="Maximum chunks to return."),
    ] = None,
    corpus: Annotated[
        Path | None,
        typer.Option("--corpus", help="Corpus directory (default: data.corpus_dir)."),
    ] = None,
) -> None:
    """Rank corpus chunks for QUERY and show them as a table."""
    cfg = load_cli_config()
    rag = open_rag(cfg, corpus)
    chunks = rag.find_relevant_documents(query, limit or cfg.retrieval.limit)

    if not chunks:
        console.print(f"[yellow]No relevant documents found[/] for '{query}'.")
        return

    table = Table(title=f"Results for '{query}'", show_lines=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Score", justify="right")
    table.add_column("Source", style="cyan")
    table.add_column("Category")
    table.add_column("Content")
    for i, chunk in enumerate(chunks, 1):
        preview = chunk.content.replace("\n", " ")
        if len(preview) > _PREVIEW_CHARS:
            preview = preview[:_PREVIEW_CHARS] + "…"
        table.add_row(
            str(i),
            f"{chunk.score:.2f}" if chunk.score is not None else "-",
            chunk.source,
            chunk.category or "-",
            preview,
        )
    console.print(table)


def context_cmd(
    query: Annotated[str, typer.Argument(help="Free-text question or keywords.")],
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-n", min=1, help="Maximum chunks to include."),
    ] = None,
    corpus: Annotated[
        Path | None,
        typer.Option("--corpus", help="Corpus directory (default: data.corpus_dir)."),
    ] = None,
) -> None:
    """Print the prompt context a chat front end would receive for QUERY."""
    cfg = load_cli_config()
    rag = open_rag(cfg, corpus)
    chunks = rag.find_relevant_documents(query, limit or cfg.retrieval.limit)
    typer.echo(rag.format_context(chunks))


def corpus_cmd(
    corpus: Annotated[
        Path | None,
        typer.Option("--corpus", help="Corpus directory (default: data.corpus_dir)."),
    ] = None,
) -> None:
    """Load the corpus and report chunks per source file."""
    cfg = load_cli_config()
    rag = open_rag(cfg, corpus)
    report = rag.report

    table = Table(title="Corpus")
    table.add_column("Source", style="cyan")
    table.add_column("Chunks", justify="right")
    for source, count in report.count_by_source().items():
        table.add_row(source, str(count))
    console.print(table)

    lines = [
        f"  Files loaded:   {len(report.loaded)}",
        f"  Chunks:         {len(report.chunks)}",
        f"  Protocols:      {len(rag.store.entity_names())}",
    ]
    for source, reason in report.skipped:
        lines.append(f"  [yellow]Skipped:[/] {source} ({reason})")
    console.print(Panel("\n".join(lines), title="[bold]Summary[/]", expand=False))


def load_cli_config() -> MagiConfig:
    """Merged config, or a rich error and exit 1 if it is invalid."""
    try:
        return load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)


def open_rag(cfg: MagiConfig, corpus: Path | None) -> SimpleRAG:
    """Loaded retriever over *corpus*; exit 1 if the directory is missing."""
    rag = build_rag(cfg, corpus)
    if not rag.data_dir.is_dir():
        console.print(err_no_corpus(str(rag.data_dir)))
        raise typer.Exit(1)
    rag.initialize()
    return rag
