"""Speakit rich error messages — actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from speakit.cli.errors import err_invalid_upload
    console.print(err_invalid_upload(str(exc)))
    raise typer.Exit(1)
"""

from __future__ import annotations


def err_no_api_key(provider: str) -> str:
    """No API key for *provider*."""
    env_map = {
        "openai": "OPENAI_API_KEY",
        "anthropic": "ANTHROPIC_API_KEY",
        "cohere": "COHERE_API_KEY",
        "gemini": "GEMINI_API_KEY",
        "mistral": "MISTRAL_API_KEY",
        "azure": "AZURE_API_KEY",
    }
    env_var = env_map.get(provider.lower(), f"{provider.upper()}_API_KEY")
    return (
        f"[red]Error:[/] No API key for '{provider}'.\n"
        f"  Set:  export {env_var}=sk-..."
    )


def err_invalid_upload(message: str) -> str:
    """File rejected before extraction (size or type)."""
    return (
        f"[red]Error:[/] {message}\n"
        "  Choose a PDF file of at most 10 MB."
    )


def err_extraction_failed(source: str, message: str) -> str:
    """URL or PDF extraction failed."""
    return (
        f"[red]Error:[/] Failed to extract content from '{source}'.\n"
        f"  {message}\n"
        "  Check the address or file and try again."
    )


def err_ssrf_blocked(url: str) -> str:
    """URL resolves to a private/reserved address."""
    return (
        f"[red]Error:[/] URL resolves to private address (SSRF protection): '{url}'\n"
        "  Use a publicly reachable URL."
    )


def err_summary_failed(message: str) -> str:
    """Summarization request failed."""
    return (
        f"[red]Error:[/] {message}\n"
        "  Check your network connection and model settings (summary.model), then retry."
    )


def err_no_voice() -> str:
    """Speech engine reports no voices."""
    return (
        "[red]Error:[/] No voice available — playback is disabled.\n"
        "  Install a voice for your synthesizer, or run with:  --engine timed"
    )


def err_unknown_voice(name: str, available: list[str]) -> str:
    """--voice does not match any installed voice."""
    listed = ", ".join(available[:10]) if available else "(none)"
    return (
        f"[red]Error:[/] Unknown voice '{name}'.\n"
        f"  Available: {listed}\n"
        "  Run:  speakit voices"
    )


def err_no_engine(message: str) -> str:
    """No usable speech synthesizer."""
    return (
        f"[red]Error:[/] {message}\n"
        "  Or run without audio:  speakit read SOURCE --engine timed"
    )


def err_history_not_found(history_id: str) -> str:
    """--resume / --delete id is not in this identity's history."""
    return (
        f"[red]Error:[/] No history entry '{history_id}'.\n"
        "  Run:  speakit history  to list entries."
    )


def err_resume_needs_file(history_id: str) -> str:
    """A PDF history entry cannot be re-fetched."""
    return (
        f"[red]Error:[/] History entry '{history_id}' is a PDF.\n"
        f"  Pass the file again:  speakit read FILE.pdf --resume {history_id}"
    )


def err_guest_cannot_delete() -> str:
    """History deletion is an account feature."""
    return (
        "[red]Error:[/] Deleting history requires an account.\n"
        "  Run with:  --user <id>   (or export SPEAKIT_USER=<id>)"
    )


def err_config(message: str) -> str:
    """Config file could not be loaded."""
    return (
        f"[red]Error:[/] Invalid configuration.\n"
        f"  {message}"
    )


def warn_not_saved(message: str) -> str:
    """Persistence failed — playback continues."""
    return (
        f"[yellow]Warning:[/] Progress could not be saved: {message}\n"
        "  Playback continues; your position may not be restored next time."
    )


def warn_speech_failed(index: int, message: str) -> str:
    """Speech stopped on a unit (advance_on_error disabled)."""
    return (
        f"[yellow]Warning:[/] Speech failed on word {index + 1}: {message}\n"
        "  Playback paused. Set playback.advance_on_error: true to skip failing words."
    )
