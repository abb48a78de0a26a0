"""
Loguru sink configuration shared by the CLI and long-running sessions.

Usage:
    from screen_agent.core.log_setup import setup_logger
    setup_logger("DEBUG", log_file="logs/screen_agent.log")
"""

import sys
from typing import Optional

from loguru import logger

VALID_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def setup_logger(level: str = "INFO", log_file: Optional[str] = None) -> str:
    """
    Replace loguru's default handler with a stderr sink and an optional file sink.

    Args:
        level: Minimum level for the stderr sink; unknown values fall back to INFO
        log_file: Optional path of a rotating DEBUG log file

    Returns:
        str: The level actually applied
    """
    level = (level or "INFO").upper()
    if level not in VALID_LEVELS:
        print(f"Warning: Invalid log level '{level}'. Defaulting to INFO.", file=sys.stderr)
        level = "INFO"

    logger.remove()  # Remove default handler
    logger.add(
        sys.stderr,
        level=level,
        format="{time:HH:mm:ss} | {level: <7} | {message}",
        backtrace=False,
        diagnose=False,
    )
    if log_file:
        logger.add(
            log_file,
            level="DEBUG",
            rotation="10 MB",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}",
        )
    return level
