"""speakit summarize — AI summary of a URL or PDF."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.panel import Panel

from speakit.cli.common import console, load_settings, load_source
from speakit.cli.errors import err_no_api_key, err_summary_failed
from speakit.config import SpeakitConfig
from speakit.gateway.llm_client import provider_of, validate_api_key
from speakit.gateway.summarizer import SummarizationError, summarize


def summarize_cmd(
    source: Annotated[str, typer.Argument(help="Article URL or path to a PDF.")],
    model: Annotated[
        str | None,
        typer.Option("--model", help="LiteLLM model string (default: summary.model)."),
    ] = None,
) -> None:
    """Extract a URL or PDF and print an AI summary of it."""
    cfg = load_settings()
    if model:
        cfg.summary.model = model
    content = load_source(source, cfg)
    print_summary(content.full_text, cfg)


def print_summary(text: str, cfg: SpeakitConfig) -> str:
    """Summarize *text* and print it in a panel. Exits on failure."""
    try:
        validate_api_key(cfg.summary.model)
    except EnvironmentError:
        console.print(err_no_api_key(provider_of(cfg.summary.model)))
        raise typer.Exit(1)

    with console.status("Generating summary..."):
        try:
            result = summarize(text, model=cfg.summary.model, max_tokens=cfg.summary.max_tokens)
        except (SummarizationError, ValueError) as exc:
            console.print(err_summary_failed(str(exc)))
            raise typer.Exit(1)

    console.print(Panel(result, title="[bold]AI Summary[/]", expand=False))
    return result
