"""
CLI Layer for Screen Agent

This package contains the command line interface for the screen agent,
providing a rich interface for human users.

The CLI layer is designed to:
1. Handle user interaction concerns
2. Format outputs for human readability
3. Parse and validate command-line arguments
4. Implement CLI-specific error handling

Usage:
    from screen_agent.cli import app as screen_agent_app

    # Run the CLI app
    screen_agent_app()
"""

# CLI application
from screen_agent.cli.cli import app

# Formatters for rich output
from screen_agent.cli.formatters import (
    print_answer,
    print_history_table,
    print_tools_table,
    print_settings_table,
    print_capture_result,
    print_error,
    print_warning,
    print_info,
    print_json,
    create_progress,
    console
)

# Response envelopes
from screen_agent.cli.schemas import format_cli_response

__all__ = [
    # CLI application
    'app',

    # Formatters
    'print_answer',
    'print_history_table',
    'print_tools_table',
    'print_settings_table',
    'print_capture_result',
    'print_error',
    'print_warning',
    'print_info',
    'print_json',
    'create_progress',
    'console',

    # Schemas
    'format_cli_response'
]
