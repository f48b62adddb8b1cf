"""Shared utility functions for RAHL.

Provides the Rich console used for all human-facing output, small formatting
helpers and file-system helpers for writing generated trees to disk.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from rich.console import Console
from rich.rule import Rule
from rich.table import Table

console = Console()


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def ensure_dir(path: str | Path) -> Path:
    """Create a directory (and parents) if it does not exist.

    Returns:
        The resolved ``Path`` object.
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path.resolve()


async def write_files(files: dict[str, str], root: str | Path) -> list[Path]:
    """Write a ``{relative_path: content}`` mapping below *root*.

    Paths that would escape *root* (absolute paths or ``..`` segments) are
    rejected with ``ValueError`` before anything is written.

    Returns:
        The written file paths, in mapping order.
    """
    base = ensure_dir(root)
    targets: list[tuple[Path, str]] = []
    for rel, content in files.items():
        target = (base / rel).resolve()
        if base != target and base not in target.parents:
            raise ValueError(f"Refusing to write outside {base}: {rel}")
        targets.append((target, content))

    written: list[Path] = []
    for target, content in targets:
        await asyncio.to_thread(_write_file, target, content)
        written.append(target)
    return written


def _write_file(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
        format_duration(3661.0) -> "1h 1m 1s"
    """
    if seconds < 0:
        return "0.0s"

    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = seconds % 60

    parts: list[str] = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")

    if hours > 0 or minutes > 0:
        parts.append(f"{int(secs)}s")
    else:
        parts.append(f"{secs:.1f}s")

    return " ".join(parts)


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


STAGE_COLORS: dict[str, str] = {
    "queued": "white",
    "analyzing": "bright_cyan",
    "generating": "bright_green",
    "coding": "bright_yellow",
    "building": "bright_magenta",
    "completed": "bold green",
    "failed": "bold red",
    "cancelled": "yellow",
}


def print_stage_header(stage: str, progress: int) -> None:
    """Print a full-width rule announcing a generation stage."""
    color = STAGE_COLORS.get(stage, "white")
    console.print(
        Rule(f"[{color}] {stage.upper()} ({progress}%) [/{color}]", style=color)
    )


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")
