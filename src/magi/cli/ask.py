"""magi ask / insights commands: RAG context + LLM answer.

Usage:
  magi ask "How does Morpho compare to Uniswap?" [--model openai/gpt-4o-mini]
  magi insights [--day 2024-06-03]
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from magi.cli.errors import err_generation_failed, err_no_api_key
from magi.cli.search import load_cli_config, open_rag
from magi.rag.assistant import ask, generate_insights, insight_query
from magi.rag.llm_client import provider_of, validate_api_key
from magi.service import read_playbook

console = Console()


def ask_cmd(
    question: Annotated[str, typer.Argument(help="Question for the assistant.")],
    model: Annotated[
        str | None,
        typer.Option("--model", "-m", help="LiteLLM model string (default: generation.model)."),
    ] = None,
    corpus: Annotated[
        Path | None,
        typer.Option("--corpus", help="Corpus directory (default: data.corpus_dir)."),
    ] = None,
) -> None:
    """Answer QUESTION with retrieved corpus context."""
    cfg = load_cli_config()
    model = model or cfg.generation.model
    _require_api_key(model)
    rag = open_rag(cfg, corpus)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
        console=console,
    ) as prog:
        prog.add_task(f"Generating with {model}…", total=None)
        try:
            answer = ask(rag, question, model, playbook=read_playbook(cfg))
        except Exception as exc:
            console.print(err_generation_failed(str(exc) or type(exc).__name__))
            raise typer.Exit(1)

    console.print(Panel(answer, title="[bold]MAGI[/]", expand=False))


def insights_cmd(
    day: Annotated[
        str | None,
        typer.Option("--day", help="Date (YYYY-MM-DD) selecting the topic; default today."),
    ] = None,
    model: Annotated[
        str | None,
        typer.Option("--model", "-m", help="LiteLLM model string (default: generation.model)."),
    ] = None,
    corpus: Annotated[
        Path | None,
        typer.Option("--corpus", help="Corpus directory (default: data.corpus_dir)."),
    ] = None,
) -> None:
    """Generate the daily Worldchain insight post."""
    try:
        when = datetime.strptime(day, "%Y-%m-%d").date() if day else None
    except ValueError:
        console.print(f"[red]Error:[/] Invalid --day '{day}'. Use YYYY-MM-DD.")
        raise typer.Exit(1)

    cfg = load_cli_config()
    model = model or cfg.generation.model
    _require_api_key(model)
    rag = open_rag(cfg, corpus)

    if when is not None:
        topic, _ = insight_query(when)
        console.print(f"  Topic: [cyan]{topic}[/]")
    text = generate_insights(rag, model, when)
    if text is None:
        console.print(err_generation_failed("see the log for details"))
        raise typer.Exit(1)
    console.print(Panel(text, title="[bold]Daily insight[/]", expand=False))


def _require_api_key(model: str) -> None:
    try:
        validate_api_key(model)
    except EnvironmentError:
        console.print(err_no_api_key(provider_of(model)))
        raise typer.Exit(1)
