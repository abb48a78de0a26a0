#!/usr/bin/env python3
"""
Unit tests for core/tools.py
"""

import os
import sys
import unittest
from datetime import datetime

from pydantic import BaseModel, ValidationError

# Add parent directory to path to import module
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from screen_agent.core.errors import ToolArgumentError, ToolExecutionError, UnknownToolError
from screen_agent.core.tools import (
    ToolDescriptor,
    ToolParameter,
    ToolRegistry,
    WEATHER_TOOL,
    default_registry,
    get_weather_info,
)


def build_registry():
    registry = ToolRegistry()

    @registry.tool(
        "setAlarm",
        "Set an alarm",
        {
            "hour": ToolParameter(type="integer", description="0-23"),
            "loud": ToolParameter(type="boolean"),
            "volume": ToolParameter(type="number"),
            "tone": ToolParameter(type="string", enum=("beep", "chime")),
        },
        required=("hour",),
    )
    def set_alarm(hour, loud=False, volume=0.5, tone="beep"):
        return {"hour": hour, "loud": loud, "volume": volume, "tone": tone}

    return registry


class TestToolDescriptor(unittest.TestCase):
    """Test cases for tool descriptors"""

    def test_unsupported_type_rejected(self):
        with self.assertRaises(ValidationError):
            ToolDescriptor(name="bad", parameters={"x": ToolParameter(type="array")})

    def test_required_must_be_declared(self):
        with self.assertRaises(ValidationError):
            ToolDescriptor(name="bad", required=("missing",))

    def test_descriptor_is_immutable(self):
        with self.assertRaises(ValidationError):
            WEATHER_TOOL.name = "other"

    def test_declaration_wire_shape(self):
        self.assertEqual(
            WEATHER_TOOL.to_declaration().to_wire(),
            {
                "name": "getWeatherInfo",
                "description": "Get the current weather for a location.",
                "parameters": {
                    "type": "object",
                    "properties": {
                        "location": {"type": "string", "description": "City or place name, e.g. Taipei"}
                    },
                    "required": ["location"],
                },
            },
        )


class TestToolRegistry(unittest.IsolatedAsyncioTestCase):
    """Test cases for registration, validation and dispatch"""

    def test_duplicate_names_rejected(self):
        registry = default_registry()
        with self.assertRaises(ValueError):
            registry.register(WEATHER_TOOL, get_weather_info)

    def test_lookup_is_exact(self):
        registry = default_registry()
        self.assertIn("getWeatherInfo", registry)
        with self.assertRaises(UnknownToolError):
            registry.descriptor("getweatherinfo")
        with self.assertRaises(UnknownToolError):
            registry.descriptor("getWeather")

    def test_arguments_are_coerced(self):
        registry = build_registry()
        validated = registry.validate_arguments(
            "setAlarm", {"hour": "7", "loud": "true", "volume": "0.8", "tone": "chime"}
        )
        self.assertEqual(validated, {"hour": 7, "loud": True, "volume": 0.8, "tone": "chime"})

    def test_whole_float_accepted_as_integer(self):
        registry = build_registry()
        self.assertEqual(registry.validate_arguments("setAlarm", {"hour": 7.0}), {"hour": 7})

    def test_invalid_arguments(self):
        registry = build_registry()
        cases = [
            {},
            {"hour": None},
            {"hour": "seven"},
            {"hour": 7.5},
            {"hour": True},
            {"hour": 7, "loud": "maybe"},
            {"hour": 7, "tone": "siren"},
            {"hour": 7, "volume": "loud"},
        ]
        for args in cases:
            with self.subTest(args=args):
                with self.assertRaises(ToolArgumentError):
                    registry.validate_arguments("setAlarm", args)

    def test_undeclared_arguments_dropped(self):
        registry = build_registry()
        self.assertEqual(registry.validate_arguments("setAlarm", {"hour": 6, "snooze": 3}), {"hour": 6})

    async def test_dispatch_sync_tool(self):
        result = await build_registry().dispatch("setAlarm", {"hour": "6"})
        self.assertEqual(result, {"hour": 6, "loud": False, "volume": 0.5, "tone": "beep"})

    async def test_dispatch_async_tool(self):
        registry = ToolRegistry()

        @registry.tool("echo", parameters={"text": ToolParameter()}, required=("text",))
        async def echo(text):
            return text.upper()

        self.assertEqual(await registry.dispatch("echo", {"text": "hi"}), {"result": "HI"})

    async def test_pydantic_results_are_dumped(self):
        class Reading(BaseModel):
            value: int

        registry = ToolRegistry()
        registry.tool("read")(lambda: Reading(value=3))

        self.assertEqual(await registry.dispatch("read"), {"value": 3})

    async def test_results_are_json_native(self):
        class Stamp(BaseModel):
            at: datetime

        registry = ToolRegistry()
        registry.tool("stamp")(lambda: Stamp(at=datetime(2024, 1, 1)))
        registry.tool("raw")(lambda: {"at": datetime(2024, 1, 1), "tags": ("a", "b")})
        registry.tool("when")(lambda: datetime(2024, 1, 1))

        self.assertEqual(await registry.dispatch("stamp"), {"at": "2024-01-01T00:00:00"})
        self.assertEqual(await registry.dispatch("raw"), {"at": "2024-01-01T00:00:00", "tags": ["a", "b"]})
        self.assertEqual(await registry.dispatch("when"), {"result": "2024-01-01T00:00:00"})

    async def test_unserializable_result_is_execution_error(self):
        registry = ToolRegistry()
        registry.tool("opaque")(lambda: {"handle": object()})

        with self.assertRaises(ToolExecutionError) as ctx:
            await registry.dispatch("opaque")
        self.assertIn("not JSON serializable", str(ctx.exception))

    async def test_tool_exception_is_wrapped(self):
        registry = ToolRegistry()

        @registry.tool("fail")
        def fail():
            raise KeyError("missing")

        with self.assertRaises(ToolExecutionError) as ctx:
            await registry.dispatch("fail", {})
        self.assertEqual(ctx.exception.tool_name, "fail")
        self.assertIsInstance(ctx.exception.cause, KeyError)

    async def test_unknown_tool_dispatch(self):
        with self.assertRaises(UnknownToolError):
            await default_registry().dispatch("nope", {})


class TestWeatherTool(unittest.IsolatedAsyncioTestCase):
    """Test cases for the built-in weather tool"""

    async def test_known_city(self):
        result = await default_registry().dispatch("getWeatherInfo", {"location": " Taipei "})
        self.assertEqual(result, {"temperature": 28.0, "unit": "celsius", "condition": "Partly cloudy"})

    def test_unknown_city_is_deterministic(self):
        first = get_weather_info("Reykjavik")
        second = get_weather_info("reykjavik")
        self.assertEqual(first, second)
        self.assertIsInstance(first.temperature, float)
        self.assertIn(first.condition, ("Sunny", "Cloudy", "Rain", "Windy"))


if __name__ == "__main__":
    unittest.main()
