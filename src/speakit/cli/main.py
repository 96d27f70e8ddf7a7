"""Speakit CLI entry point."""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from speakit.cli.common import console
from speakit.cli.library import bookmarks_cmd, history_cmd, voices_cmd
from speakit.cli.read import read_cmd
from speakit.cli.summarize import summarize_cmd


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"speakit {_version()}")
        raise typer.Exit()


def _version() -> str:
    try:
        return importlib.metadata.version("speakit")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


app = typer.Typer(
    name="speakit",
    help=(
        "Speakit — listen to any article or document.\n\n"
        "  speakit read URL_OR_PDF   Word-by-word speech with the current word highlighted.\n"
        "  speakit summarize SOURCE  AI summary of an article or PDF."
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
        typer.Option("--verbose", "-v", help="Log debug output."),
    ] = False,
) -> None:
    """Speakit — listen to any article or document."""
    _configure_logging(verbose)


app.command("read")(read_cmd)
app.command("summarize")(summarize_cmd)
app.command("history")(history_cmd)
app.command("bookmarks")(bookmarks_cmd)
app.command("voices")(voices_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed Speakit version."""
    typer.echo(f"speakit {_version()}")


if __name__ == "__main__":
    app()
