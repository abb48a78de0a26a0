#!/usr/bin/env python3
"""
Validators for Screen Agent CLI

This module provides Typer callbacks that validate CLI inputs and turn
them into the values the core layer expects.

This module is part of the Presentation Layer and should only depend on
Core Layer components, not on Integration Layer.

Sample input:
- --args '{"location": "Taipei"}'
- --monitor 2

Expected output:
- {"location": "Taipei"}
- 2
"""

import json
import os
from typing import Any, Dict, Optional

import typer

from screen_agent.core.log_setup import VALID_LEVELS
from screen_agent.cli.formatters import print_error, print_warning


def validate_json_output(ctx: typer.Context, value: bool) -> bool:
    """
    Typer callback for validating JSON output option.

    Args:
        ctx: Typer context
        value: JSON output flag from CLI

    Returns:
        bool: Validated JSON output flag
    """
    # Store in context for other callbacks to access
    ctx.ensure_object(dict)
    ctx.obj["json_output"] = value
    return value


def validate_log_level(ctx: typer.Context, value: str) -> str:
    level = value.upper()
    if level not in VALID_LEVELS:
        print_error(f"Invalid log level: {value}. Must be one of {', '.join(VALID_LEVELS)}.")
        raise typer.Exit(1)
    return level


def validate_prompt_option(ctx: typer.Context, value: str) -> str:
    """
    Typer callback for validating the question text.

    Args:
        ctx: Typer context
        value: Prompt from CLI

    Returns:
        str: Validated prompt
    """
    if not value or not value.strip():
        print_error("A prompt is required.")
        raise typer.Exit(1)
    if len(value.strip()) < 3:
        print_warning("Prompt is very short. Consider asking a more detailed question for better results.")
    return value


def validate_capture_seconds(ctx: typer.Context, value: float) -> float:
    if value < 0:
        print_error(f"Invalid capture duration: {value}. Must be zero or more seconds.")
        raise typer.Exit(1)
    return value


def validate_tool_args(ctx: typer.Context, value: Optional[str]) -> Dict[str, Any]:
    """
    Typer callback parsing tool arguments given as a JSON object.

    Args:
        ctx: Typer context
        value: JSON text from CLI

    Returns:
        Dict[str, Any]: Parsed arguments (empty when omitted)
    """
    if value is None or not value.strip():
        return {}
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as e:
        print_error(f"Invalid JSON for --args: {e}")
        raise typer.Exit(1)
    if not isinstance(parsed, dict):
        print_error("--args must be a JSON object, e.g. '{\"location\": \"Taipei\"}'")
        raise typer.Exit(1)
    return parsed


def validate_monitor_option(ctx: typer.Context, value: int) -> int:
    """
    Typer callback for validating the monitor number.

    Args:
        ctx: Typer context
        value: Monitor number from CLI (0 is all monitors combined)

    Returns:
        int: Validated monitor number
    """
    if value < 0:
        print_error(f"Invalid monitor number: {value}. Use 1 for the primary monitor or 0 for all monitors.")
        raise typer.Exit(1)
    return value


def validate_output_file(ctx: typer.Context, value: Optional[str]) -> Optional[str]:
    """
    Typer callback for validating an output file path.

    Args:
        ctx: Typer context
        value: Output file path from CLI

    Returns:
        Optional[str]: Validated path with its directory created
    """
    if value is None:
        return None

    directory = os.path.dirname(os.path.abspath(value))
    try:
        os.makedirs(directory, exist_ok=True)
    except OSError as e:
        print_error(f"Cannot create output directory: {directory}. Error: {e}")
        raise typer.Exit(1)
    return value
