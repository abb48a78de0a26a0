#!/usr/bin/env python3
"""
Tool Registry for Model Function Calling

This module maps tool names to executable functions and the descriptors the
model sees as function declarations. Dispatch is by exact name. Arguments
sent by the model are validated and coerced against the descriptor's
parameter schema before the function runs, so a tool always receives the
types it declared.

This module is part of the Core Layer and should have no dependencies on
Presentation or Integration layers.

Sample input:
- registry = default_registry()
- await registry.dispatch("getWeatherInfo", {"location": "Taipei"})

Expected output:
- {"temperature": 28.0, "unit": "celsius", "condition": "Partly cloudy"}
"""

import asyncio
import inspect
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_core import PydanticSerializationError, to_jsonable_python

from screen_agent.core.errors import ToolArgumentError, ToolExecutionError, UnknownToolError
from screen_agent.core.protocol import FunctionDeclaration, FunctionParameters, ParameterProperty
from screen_agent.core.utils import truncate_large_value

SUPPORTED_TYPES = ("string", "number", "integer", "boolean")


class ToolParameter(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str = "string"
    description: Optional[str] = None
    enum: Optional[Tuple[str, ...]] = None


class ToolDescriptor(BaseModel):
    """Name, description and parameter schema of a registered tool."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    description: str = ""
    parameters: Dict[str, ToolParameter] = Field(default_factory=dict)
    required: Tuple[str, ...] = ()

    @model_validator(mode="after")
    def _check_schema(self) -> "ToolDescriptor":
        for param_name, param in self.parameters.items():
            if param.type not in SUPPORTED_TYPES:
                raise ValueError(f"Parameter {param_name} of {self.name} has unsupported type {param.type}")
        missing = [name for name in self.required if name not in self.parameters]
        if missing:
            raise ValueError(f"Required parameters {missing} of {self.name} are not declared")
        return self

    def to_declaration(self) -> FunctionDeclaration:
        properties = {
            name: ParameterProperty(
                type=param.type,
                description=param.description,
                enum=list(param.enum) if param.enum else None,
            )
            for name, param in self.parameters.items()
        }
        return FunctionDeclaration(
            name=self.name,
            description=self.description,
            parameters=FunctionParameters(properties=properties, required=list(self.required) or None),
        )


def _coerce(tool_name: str, arg_name: str, value: Any, param: ToolParameter) -> Any:
    expected = param.type
    try:
        if expected == "string":
            if isinstance(value, (dict, list)):
                raise TypeError("expected a string")
            coerced: Any = value if isinstance(value, str) else str(value)
        elif expected == "boolean":
            if isinstance(value, bool):
                coerced = value
            elif isinstance(value, str) and value.strip().lower() in ("true", "false"):
                coerced = value.strip().lower() == "true"
            else:
                raise TypeError("expected a boolean")
        elif expected == "integer":
            if isinstance(value, bool):
                raise TypeError("expected an integer")
            if isinstance(value, float):
                if not value.is_integer():
                    raise TypeError("expected an integer")
                coerced = int(value)
            else:
                coerced = int(value)
        else:
            if isinstance(value, bool):
                raise TypeError("expected a number")
            coerced = float(value)
    except (TypeError, ValueError) as e:
        raise ToolArgumentError(tool_name, f"{arg_name}: {e}") from e

    if param.enum and coerced not in param.enum:
        raise ToolArgumentError(tool_name, f"{arg_name} must be one of {list(param.enum)}, got {coerced!r}")
    return coerced


def _normalize_result(result: Any) -> Dict[str, Any]:
    # Results go into the request body, so they must be JSON-native
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json")
    if isinstance(result, dict):
        return to_jsonable_python(result)
    return {"result": to_jsonable_python(result)}


class ToolRegistry:
    """Name -> (descriptor, function) mapping used by the orchestrator."""

    def __init__(self) -> None:
        self._tools: Dict[str, Tuple[ToolDescriptor, Callable[..., Any]]] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    @property
    def names(self) -> List[str]:
        return list(self._tools)

    def register(self, descriptor: ToolDescriptor, func: Callable[..., Any]) -> None:
        if descriptor.name in self._tools:
            raise ValueError(f"Tool {descriptor.name} is already registered")
        self._tools[descriptor.name] = (descriptor, func)
        logger.debug(f"Registered tool {descriptor.name}")

    def tool(
        self,
        name: str,
        description: str = "",
        parameters: Optional[Mapping[str, ToolParameter]] = None,
        required: Tuple[str, ...] = (),
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator form of register()."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            descriptor = ToolDescriptor(
                name=name, description=description, parameters=parameters or {}, required=tuple(required)
            )
            self.register(descriptor, func)
            return func

        return decorator

    def descriptor(self, name: str) -> ToolDescriptor:
        if name not in self._tools:
            raise UnknownToolError(name)
        return self._tools[name][0]

    def descriptors(self) -> List[ToolDescriptor]:
        return [descriptor for descriptor, _ in self._tools.values()]

    def declarations(self) -> List[FunctionDeclaration]:
        return [descriptor.to_declaration() for descriptor in self.descriptors()]

    def validate_arguments(self, name: str, args: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """
        Check and coerce function-call arguments against the tool's schema.

        Raises:
            UnknownToolError: No tool has this exact name
            ToolArgumentError: A required argument is missing or a value does not fit its type
        """
        descriptor = self.descriptor(name)
        args = dict(args or {})

        missing = [param for param in descriptor.required if args.get(param) is None]
        if missing:
            raise ToolArgumentError(name, f"missing required argument(s): {', '.join(missing)}")

        validated: Dict[str, Any] = {}
        for arg_name, value in args.items():
            param = descriptor.parameters.get(arg_name)
            if param is None:
                logger.warning(f"Dropping undeclared argument '{arg_name}' for tool {name}")
                continue
            if value is None:
                continue
            validated[arg_name] = _coerce(name, arg_name, value, param)
        return validated

    async def dispatch(self, name: str, args: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """
        Run a tool by exact name and return its result as a JSON object.

        Raises:
            UnknownToolError, ToolArgumentError, ToolExecutionError
        """
        validated = self.validate_arguments(name, args)
        _, func = self._tools[name]
        logger.info(f"Calling tool {name} with {truncate_large_value(validated)}")

        try:
            if inspect.iscoroutinefunction(func):
                result = await func(**validated)
            else:
                result = await asyncio.to_thread(func, **validated)
        except Exception as e:
            logger.error(f"Tool {name} raised: {e}")
            raise ToolExecutionError(name, e) from e

        try:
            normalized = _normalize_result(result)
        except PydanticSerializationError as e:
            logger.error(f"Tool {name} returned an unserializable result: {e}")
            raise ToolExecutionError(name, f"result is not JSON serializable ({e})") from e
        logger.debug(f"Tool {name} returned {truncate_large_value(normalized)}")
        return normalized


class WeatherInfo(BaseModel):
    temperature: float
    unit: str = "celsius"
    condition: str


# Fixed readings for well-known cities
_MOCK_WEATHER: Dict[str, Tuple[float, str]] = {
    "taipei": (28.0, "Partly cloudy"),
    "tokyo": (22.0, "Clear"),
    "london": (14.0, "Light rain"),
    "new york": (18.0, "Overcast"),
    "sydney": (24.0, "Sunny"),
}

WEATHER_TOOL = ToolDescriptor(
    name="getWeatherInfo",
    description="Get the current weather for a location.",
    parameters={
        "location": ToolParameter(type="string", description="City or place name, e.g. Taipei"),
    },
    required=("location",),
)


def get_weather_info(location: str) -> WeatherInfo:
    """Return a deterministic mock reading for a location."""
    key = location.strip().lower()
    if key in _MOCK_WEATHER:
        temperature, condition = _MOCK_WEATHER[key]
    else:
        # Stable pseudo-reading derived from the name
        seed = sum(ord(ch) for ch in key)
        temperature = float(10 + seed % 20)
        condition = ("Sunny", "Cloudy", "Rain", "Windy")[seed % 4]
    return WeatherInfo(temperature=temperature, condition=condition)


def default_registry() -> ToolRegistry:
    registry = ToolRegistry()
    registry.register(WEATHER_TOOL, get_weather_info)
    return registry


if __name__ == "__main__":
    """Validate the registry and the built-in weather tool"""
    import sys

    all_validation_failures = []
    total_tests = 0

    registry = default_registry()

    # Test 1: Declarations carry the schema
    total_tests += 1
    declaration = registry.declarations()[0].to_wire()
    if declaration["name"] != "getWeatherInfo" or declaration["parameters"]["required"] != ["location"]:
        all_validation_failures.append(f"Declaration test: unexpected {declaration}")

    # Test 2: Dispatch returns a JSON object
    total_tests += 1
    result = asyncio.run(registry.dispatch("getWeatherInfo", {"location": "Taipei"}))
    if result != {"temperature": 28.0, "unit": "celsius", "condition": "Partly cloudy"}:
        all_validation_failures.append(f"Dispatch test: unexpected {result}")

    # Test 3: Unknown tool is typed
    total_tests += 1
    try:
        asyncio.run(registry.dispatch("getWeather", {}))
        all_validation_failures.append("Unknown tool test: no error raised")
    except UnknownToolError:
        pass

    if all_validation_failures:
        print(f"❌ VALIDATION FAILED - {len(all_validation_failures)} of {total_tests} tests failed:")
        for failure in all_validation_failures:
            print(f"  - {failure}")
        sys.exit(1)
    else:
        print(f"✅ VALIDATION PASSED - All {total_tests} tests produced expected results")
        print("Tool registry is validated and ready for use")
        sys.exit(0)
