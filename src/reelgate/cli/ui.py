"""Shared CLI UI helpers (Rich formatting)."""

from __future__ import annotations

from typing import Mapping

from rich.console import Console
from rich.table import Table

from reelgate.models import TaskState

console = Console()


def format_status(status: str) -> str:
    """Return colorized status string for terminal output."""
    colors = {
        TaskState.QUEUED.value: "grey62",
        TaskState.PROCESSING.value: "cyan",
        TaskState.SUCCEEDED.value: "green",
        TaskState.FAILED.value: "red",
    }
    color = colors.get(status, "white")
    return f"[{color}]{status}[/{color}]"


def render_task_status(task: Mapping[str, str], *, title: str = "Task") -> None:
    table = Table(title=title, show_header=False, show_lines=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    for field, value in task.items():
        table.add_row(field, format_status(value) if field == "status" else str(value))
    console.print(table)
