"""
Screen Agent

Periodic screen capture batched into multimodal questions for a Gemini
model, with function-calling tool resolution.

Layers:
- core: capture batcher, conversation orchestrator, tools, protocol, client
- cli: Typer + Rich command line interface
"""

__version__ = "0.1.0"
