#!/usr/bin/env python3
"""
Command Line Interface for Screen Agent

This module provides a CLI for asking questions about your screen using
Typer and Rich: one-shot questions with optional timed capture, an
interactive chat with capture control, and inspection commands for tools,
settings and the frame source.

This module is part of the Presentation Layer and should only depend on
Core Layer components, not on Integration Layer.

Sample input:
- screen-agent ask "What does this error mean?" --capture-seconds 3
- screen-agent --json tools call getWeatherInfo --args '{"location": "Tokyo"}'

Expected output:
- Formatted answer panel (or JSON envelope with --json)
- {"success": true, "data": {"tool": "getWeatherInfo", "result": {...}}}
"""

import asyncio
import sys
from typing import Any, Dict, List, Optional

import typer
from rich.prompt import Prompt
from loguru import logger

from screen_agent.core.config import SettingsProvider
from screen_agent.core.errors import ExchangeError, ScreenAgentError
from screen_agent.core.frame_source import ScreenFrameSource
from screen_agent.core.log_setup import setup_logger
from screen_agent.core.session import ScreenAgentSession
from screen_agent.core.tools import default_registry
from screen_agent.cli.formatters import (
    console,
    create_progress,
    print_answer,
    print_capture_result,
    print_error,
    print_history_table,
    print_info,
    print_json,
    print_settings_table,
    print_tools_table,
    print_warning,
    settings_as_dict,
)
from screen_agent.cli.schemas import format_cli_response
from screen_agent.cli.validators import (
    validate_capture_seconds,
    validate_json_output,
    validate_log_level,
    validate_output_file,
    validate_monitor_option,
    validate_prompt_option,
    validate_tool_args,
)


# Initialize typer app with command groups
app = typer.Typer(
    help="Ask an AI assistant about what is on your screen",
    rich_markup_mode="rich",
    add_completion=False,
)

tools_app = typer.Typer(help="Function-calling tools", rich_markup_mode="rich")
config_app = typer.Typer(help="Configuration commands", rich_markup_mode="rich")
capture_app = typer.Typer(help="Screen capture commands", rich_markup_mode="rich")

app.add_typer(tools_app, name="tools", help="Function-calling tools")
app.add_typer(config_app, name="config", help="Configuration commands")
app.add_typer(capture_app, name="capture", help="Screen capture commands")

CHAT_HELP = (
    "/start          begin capturing the screen\n"
    "/stop [prompt]  send the pending frames with prompt, then stop capturing\n"
    "/reset          clear the conversation\n"
    "/history        show answered questions\n"
    "/quit           leave the chat\n"
    "Anything else is sent as a question."
)


def _fail(json_output: bool, message: str, title: str = "Error") -> None:
    if json_output:
        print_json(format_cli_response(False, error=message))
    else:
        print_error(message, title=title)
    sys.exit(1)


def _build_session(settings: SettingsProvider, monitor: int) -> ScreenAgentSession:
    return ScreenAgentSession(settings, frame_source=ScreenFrameSource(monitor=monitor))


@app.callback()
def main(
    ctx: typer.Context,
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output results as JSON",
        callback=validate_json_output,
    ),
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        help="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
        callback=validate_log_level,
    ),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Also write DEBUG logs to this file"),
    env_file: Optional[str] = typer.Option(None, "--env-file", help="Path to a .env file with settings"),
):
    """
    Screen Agent - periodic screenshots plus a Gemini model that answers questions about them.
    """
    ctx.ensure_object(dict)
    ctx.obj["json_output"] = json_output
    setup_logger(log_level, log_file)
    try:
        ctx.obj["settings"] = SettingsProvider.from_env(env_file)
    except ValueError as e:
        _fail(json_output, f"Invalid configuration: {e}", title="Configuration Error")


@app.command("ask")
def ask_command(
    ctx: typer.Context,
    prompt: str = typer.Argument(..., help="Question about your screen", callback=validate_prompt_option),
    capture_seconds: float = typer.Option(
        0.0,
        "--capture-seconds", "-s",
        help="Capture the screen periodically for this many seconds and send all frames",
        callback=validate_capture_seconds,
    ),
    no_screen: bool = typer.Option(False, "--no-screen", help="Send the question without any screen frames"),
    monitor: int = typer.Option(
        1, "--monitor", "-m", help="Monitor number (1 is primary, 0 is all)", callback=validate_monitor_option
    ),
):
    """
    Ask one question, optionally about a few seconds of screen activity.
    """
    json_output = ctx.obj.get("json_output", False)
    settings: SettingsProvider = ctx.obj["settings"]

    async def run() -> str:
        session = _build_session(settings, monitor)
        try:
            if capture_seconds > 0 and not no_screen:
                session.start_capturing()
                await asyncio.sleep(capture_seconds)
                return await session.stop_capturing(prompt) or ""
            return await session.ask(prompt, include_screen=not no_screen)
        finally:
            image_counts.extend(record.image_count for record in session.exchanges)
            await session.aclose()

    image_counts: List[int] = []
    try:
        if json_output:
            answer = asyncio.run(run())
        else:
            with create_progress() as progress:
                progress.add_task("Waiting for the model...", total=None)
                answer = asyncio.run(run())
    except ScreenAgentError as e:
        logger.error(f"Ask command failed: {e}")
        _fail(json_output, str(e))
        return

    image_count = image_counts[-1] if image_counts else 0
    if json_output:
        print_json(format_cli_response(True, data={"prompt": prompt, "answer": answer, "image_count": image_count}))
    else:
        print_answer(prompt, answer, image_count)


@app.command("chat")
def chat_command(
    ctx: typer.Context,
    monitor: int = typer.Option(
        1, "--monitor", "-m", help="Monitor number (1 is primary, 0 is all)", callback=validate_monitor_option
    ),
):
    """
    Interactive conversation with screen capture control.
    """
    settings: SettingsProvider = ctx.obj["settings"]
    if not settings.current().is_configured:
        print_warning("No API key configured. Set SCREEN_AGENT_API_KEY or GEMINI_API_KEY.")

    async def ask(session: ScreenAgentSession, prompt: str, stop: bool = False) -> None:
        try:
            if stop:
                answer = await session.stop_capturing(prompt)
                if answer is None:
                    print_info("Screen capture stopped")
                    return
            else:
                answer = await session.ask(prompt)
        except ScreenAgentError as e:
            print_error(str(e))
            return
        image_count = session.exchanges[-1].image_count if session.exchanges else 0
        print_answer(prompt, answer, image_count)

    async def run() -> None:
        session = _build_session(settings, monitor)
        print_info(CHAT_HELP, title="Screen Agent Chat")
        try:
            while True:
                line = (await asyncio.to_thread(Prompt.ask, "[bold magenta]You")).strip()
                if not line:
                    continue
                command, _, rest = line.partition(" ")
                if command == "/quit":
                    break
                if command == "/start":
                    try:
                        session.start_capturing()
                        print_info("Screen capture started")
                    except ScreenAgentError as e:
                        print_error(str(e))
                elif command == "/stop":
                    await ask(session, rest, stop=True)
                elif command == "/reset":
                    try:
                        session.reset()
                        print_info("Conversation cleared")
                    except ScreenAgentError as e:
                        print_error(str(e))
                elif command == "/history":
                    print_history_table(session.exchanges)
                elif command.startswith("/"):
                    print_warning(f"Unknown command {command}\n\n{CHAT_HELP}")
                else:
                    await ask(session, line)
        finally:
            await session.aclose()

    try:
        asyncio.run(run())
    except (KeyboardInterrupt, EOFError):
        console.print()


@tools_app.command("list")
def tools_list(ctx: typer.Context):
    """
    Show the tools the model may call.
    """
    json_output = ctx.obj.get("json_output", False)
    registry = default_registry()

    if json_output:
        tools = [descriptor.model_dump(mode="json") for descriptor in registry.descriptors()]
        print_json(format_cli_response(True, data={"tools": tools}))
    else:
        print_tools_table(registry.descriptors())


@tools_app.command("schema")
def tools_schema(ctx: typer.Context):
    """
    Show the function declarations sent to the model.
    """
    declarations = [declaration.to_wire() for declaration in default_registry().declarations()]
    print_json(
        format_cli_response(True, data={"functionDeclarations": declarations}),
        title="Function Declarations",
    )


@tools_app.command("call")
def tools_call(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Exact tool name"),
    args: Optional[str] = typer.Option(
        None, "--args", "-a", help="Tool arguments as a JSON object", callback=validate_tool_args
    ),
):
    """
    Run a registered tool locally, the same way the model's calls are dispatched.
    """
    json_output = ctx.obj.get("json_output", False)
    arguments: Dict[str, Any] = args or {}

    try:
        result = asyncio.run(default_registry().dispatch(name, arguments))
    except ExchangeError as e:
        logger.error(f"Tool call failed: {e}")
        _fail(json_output, str(e), title="Tool Error")
        return

    print_json(format_cli_response(True, data={"tool": name, "result": result}), title=f"Tool Result: {name}")


@config_app.command("show")
def config_show(ctx: typer.Context):
    """
    Show the effective settings (API key masked).
    """
    json_output = ctx.obj.get("json_output", False)
    settings = ctx.obj["settings"].current()

    if json_output:
        print_json(format_cli_response(True, data=settings_as_dict(settings)))
    else:
        print_settings_table(settings)
        if not settings.is_configured:
            print_warning("No API key configured. Set SCREEN_AGENT_API_KEY or GEMINI_API_KEY.")


@capture_app.command("test")
def capture_test(
    ctx: typer.Context,
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Save the captured JPEG frame to this file", callback=validate_output_file
    ),
    monitor: int = typer.Option(
        1, "--monitor", "-m", help="Monitor number (1 is primary, 0 is all)", callback=validate_monitor_option
    ),
):
    """
    Capture one frame to check that screen capture works.
    """
    json_output = ctx.obj.get("json_output", False)

    try:
        frame = ScreenFrameSource(monitor=monitor).capture()
    except ScreenAgentError as e:
        logger.error(f"Capture test failed: {e}")
        _fail(json_output, str(e), title="Capture Error")
        return

    if output:
        with open(output, "wb") as f:
            f.write(frame)

    if json_output:
        print_json(format_cli_response(True, data={"file": output, "bytes_size": len(frame), "monitor": monitor}))
    else:
        print_capture_result(output, len(frame), monitor)


if __name__ == "__main__":
    app()
