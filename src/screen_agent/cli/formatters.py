#!/usr/bin/env python3
"""
Formatters for Screen Agent CLI

This module provides rich formatting utilities for the CLI presentation layer:
answer panels, history and tool tables, settings display and the shared
error / warning / info / JSON panels.

This module is part of the Presentation Layer and should only depend on
Core Layer components, not on Integration Layer.

Sample input:
- print_answer("What is open?", "A terminal and a browser.", image_count=3)

Expected output:
- A green panel titled "Answer (3 frames)" containing the answer text
"""

import json
from typing import Any, Dict, Iterable, Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from screen_agent.core.config import Settings
from screen_agent.core.history import ExchangeRecord
from screen_agent.core.tools import ToolDescriptor
from screen_agent.core.utils import mask_secret


# Initialize console
console = Console()


# Color scheme
COLORS = {
    "success": "green",
    "error": "red",
    "warning": "yellow",
    "info": "blue",
    "path": "cyan",
    "highlight": "magenta",
    "dim": "grey70",
}


def print_answer(prompt: str, answer: str, image_count: int = 0) -> None:
    """
    Format and print a model answer.

    Args:
        prompt: The question that was asked
        answer: Answer text returned by the orchestrator
        image_count: Number of frames sent with the question
    """
    content = Text()
    content.append("Q: ", style=COLORS["dim"])
    content.append(f"{prompt}\n\n", style=COLORS["highlight"])
    content.append(answer)

    frames = f" ({image_count} frame{'s' if image_count != 1 else ''})" if image_count else ""
    panel = Panel(
        content,
        title=f"[bold green]Answer{frames}",
        border_style=COLORS["success"],
        padding=(1, 2),
    )
    console.print(panel)


def print_history_table(exchanges: Iterable[ExchangeRecord]) -> None:
    """Print the exchanges of this session, oldest first."""
    table = Table(title="Conversation History")

    table.add_column("Time", style=COLORS["dim"])
    table.add_column("Frames", justify="right", style=COLORS["info"])
    table.add_column("Prompt", style=COLORS["highlight"])
    table.add_column("Answer")

    for record in exchanges:
        table.add_row(
            record.timestamp.strftime("%H:%M:%S"),
            str(record.image_count),
            record.prompt,
            record.answer,
        )

    console.print(table)


def print_tools_table(descriptors: Iterable[ToolDescriptor]) -> None:
    table = Table(title="Registered Tools")

    table.add_column("Name", style=COLORS["highlight"])
    table.add_column("Description")
    table.add_column("Parameters", style=COLORS["info"])

    for descriptor in descriptors:
        params = []
        for name, param in descriptor.parameters.items():
            marker = "*" if name in descriptor.required else ""
            enum = f" [{'|'.join(param.enum)}]" if param.enum else ""
            params.append(f"{name}{marker}: {param.type}{enum}")
        table.add_row(descriptor.name, descriptor.description, "\n".join(params))

    console.print(table)


def settings_as_dict(settings: Settings) -> Dict[str, Any]:
    """Settings as a display dictionary with the API key masked."""
    data = settings.model_dump(mode="json")
    data["api_key"] = mask_secret(settings.api_key)
    data["capture_interval_ms"] = settings.capture_interval_ms
    return data


def print_settings_table(settings: Settings) -> None:
    table = Table(title="Screen Agent Settings")

    table.add_column("Setting", style=COLORS["highlight"])
    table.add_column("Value")

    for key, value in settings_as_dict(settings).items():
        if key == "system_prompt" and len(str(value)) > 80:
            value = f"{str(value)[:77]}..."
        table.add_row(key, str(value))

    console.print(table)


def print_capture_result(path: Optional[str], size_bytes: int, monitor: int) -> None:
    info = Text()
    info.append("Monitor: ", style=COLORS["dim"])
    info.append(f"{monitor}\n", style=COLORS["info"])
    info.append("Size: ", style=COLORS["dim"])
    info.append(f"{size_bytes / 1024:.1f} KB", style=COLORS["info"])
    if path:
        info.append("\nFile: ", style=COLORS["dim"])
        info.append(path, style=COLORS["path"])

    panel = Panel(
        info,
        title="[bold green]Frame Captured Successfully",
        border_style=COLORS["success"],
        padding=(1, 2),
    )
    console.print(panel)


def print_error(message: str, title: str = "Error") -> None:
    """
    Format and print error message to the console.

    Args:
        message: Error message
        title: Panel title
    """
    panel = Panel(
        Text(message, style=COLORS["error"]),
        title=f"[bold {COLORS['error']}]{title}",
        border_style=COLORS["error"],
        padding=(1, 2),
    )
    console.print(panel)


def print_warning(message: str, title: str = "Warning") -> None:
    """
    Format and print warning message to the console.

    Args:
        message: Warning message
        title: Panel title
    """
    panel = Panel(
        Text(message, style=COLORS["warning"]),
        title=f"[bold {COLORS['warning']}]{title}",
        border_style=COLORS["warning"],
        padding=(1, 2),
    )
    console.print(panel)


def print_info(message: str, title: str = "Info") -> None:
    """
    Format and print info message to the console.

    Args:
        message: Info message
        title: Panel title
    """
    panel = Panel(
        Text(message, style=COLORS["info"]),
        title=f"[bold {COLORS['info']}]{title}",
        border_style=COLORS["info"],
        padding=(1, 2),
    )
    console.print(panel)


def print_json(data: Dict[str, Any], title: str = "JSON Output") -> None:
    """
    Format and print JSON data to the console.

    Args:
        data: JSON data
        title: Panel title
    """
    json_str = json.dumps(data, indent=2, default=str)
    syntax = Syntax(json_str, "json", theme="monokai", line_numbers=True)

    panel = Panel(
        syntax,
        title=f"[bold {COLORS['info']}]{title}",
        border_style=COLORS["info"],
        padding=(1, 2),
    )
    console.print(panel)


def create_progress() -> Progress:
    """Spinner shown while a request is in flight."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )
