"""Rich-based terminal output for the CLI chat."""

from __future__ import annotations

import sys
import time
from typing import TYPE_CHECKING, Iterable

from pygments.styles import get_all_styles
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.padding import Padding
from rich.status import Status

if TYPE_CHECKING:
    from ..services.chat_session import Turn

console = Console()

# ---------------------------------------------------------------------------
# Color palette, explicit values for readability on dark terminals.
# ---------------------------------------------------------------------------

GOLD = "#C5A059"  # prompts, accents
SLATE = "#94A3B8"  # continuation prompt, labels
MUTED = "#8b8b8b"  # secondary text
CHROME = "#6b7280"  # UI chrome (status messages, hints)

# Spinner state
_thinking_start: float = 0
_spinner: Status | None = None


def start_thinking() -> None:
    """Show a transient spinner while the model is generating."""
    global _thinking_start, _spinner
    _thinking_start = time.monotonic()
    _spinner = Status("Thinking...", console=console, spinner="dots")
    _spinner.start()


def stop_thinking() -> float:
    """Stop the spinner, return elapsed seconds."""
    global _spinner
    elapsed = 0.0
    if _spinner:
        elapsed = time.monotonic() - _thinking_start
        _spinner.stop()
        _spinner = None
    return elapsed


def is_valid_style(name: str) -> bool:
    return name in set(get_all_styles())


def available_styles() -> list[str]:
    return sorted(get_all_styles())


def render_cli(prompt: str, message: str) -> None:
    """Print ``<prompt><message>`` as one plain line, no markup or wrapping."""
    console.print(f"{prompt}{message}", markup=False, highlight=False, emoji=False, soft_wrap=True)


def render_markdown(text: str, code_theme: str) -> None:
    if not text.strip():
        return
    console.print(Padding(Markdown(text, code_theme=code_theme), (0, 2, 0, 2)))


def render_raw_chunk(chunk: str) -> None:
    sys.stdout.write(chunk)
    sys.stdout.flush()


def render_raw_end() -> None:
    sys.stdout.write("\n")
    sys.stdout.flush()


def render_welcome(model: str, prefix: str, multiline: bool, terminator: str) -> None:
    console.print(f"\n[bold]confab[/bold] [{CHROME}]- {escape(model)}[/{CHROME}]")
    if multiline:
        console.print(f"  [{MUTED}]Multi-line input: end a message with [bold]{escape(terminator)}[/bold][/{MUTED}]")
    console.print(
        f"  [{MUTED}]Type [bold]{escape(prefix)}help[/bold] for commands, [bold]Ctrl+C[/bold] to exit[/{MUTED}]\n"
    )


def render_help(prefix: str, entries: Iterable[tuple[list[str], str]]) -> None:
    console.print("\n[bold]Commands:[/bold]")
    for names, description in entries:
        label = ", ".join(f"{prefix}{n}" for n in names)
        console.print(f"  {escape(label):<28} - {escape(description)}")
    console.print("\n[bold]Input:[/bold]")
    console.print("  Ctrl+C      - Clear the line, or exit at an empty prompt")
    console.print("  Ctrl+D      - Exit\n")


def render_history(user_prompt: str, cli_prompt: str, turns: list[Turn]) -> None:
    if not turns:
        console.print(f"[{CHROME}]No history[/{CHROME}]")
        return
    for turn in turns:
        console.print(f"[{GOLD}]{escape(user_prompt)}[/{GOLD}]{escape(turn.user)}", highlight=False)
        console.print(f"[{SLATE}]{escape(cli_prompt)}[/{SLATE}]{escape(turn.reply)}", highlight=False)
    console.print()


def render_models(models: list[str], current: str) -> None:
    if not models:
        console.print(f"[{CHROME}]No models reported by the endpoint[/{CHROME}]")
        return
    console.print("\n[bold]Available models:[/bold]")
    for name in models:
        marker = " [green](current)[/green]" if name == current else ""
        console.print(f"  - {escape(name)}{marker}")
    console.print()
