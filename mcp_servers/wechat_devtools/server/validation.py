"""
Argument checks against a tool's JSON-Schema `inputSchema`.

Covers the subset the tool definitions use: required keys, primitive types,
array item types, enums and defaults. Aliased argument names are folded in
before checking.
"""

from __future__ import annotations

import copy
from typing import Any

from ..errors import InvalidArgument, MissingRequiredArgument

_TYPE_NAMES: dict[str, str] = {
    "string": "a string",
    "integer": "an integer",
    "number": "a number",
    "boolean": "a boolean",
    "object": "an object",
    "array": "an array",
}


def _matches(value: Any, expected: str | list[str]) -> bool:
    if isinstance(expected, list):
        return any(_matches(value, t) for t in expected)
    if expected == "string":
        return isinstance(value, str)
    if expected == "boolean":
        return isinstance(value, bool)
    if expected == "integer":
        return isinstance(value, int) and not isinstance(value, bool)
    if expected == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if expected == "object":
        return isinstance(value, dict)
    if expected == "array":
        return isinstance(value, list)
    if expected == "null":
        return value is None
    return True


def _check_value(tool: str, key: str, value: Any, prop: dict[str, Any]) -> None:
    if "anyOf" in prop:
        if not any(_matches(value, option.get("type", [])) for option in prop["anyOf"] if isinstance(option, dict)):
            raise InvalidArgument(f"Invalid argument '{key}' for {tool}", argument=key)
        return
    expected = prop.get("type")
    if expected and not _matches(value, expected):
        kind = _TYPE_NAMES.get(expected, str(expected)) if isinstance(expected, str) else "/".join(expected)
        raise InvalidArgument(f"Invalid argument '{key}' for {tool}: expected {kind}", argument=key)
    enum = prop.get("enum")
    if enum is not None and value not in enum:
        allowed = ", ".join(str(v) for v in enum)
        raise InvalidArgument(f"Invalid argument '{key}' for {tool}: must be one of {allowed}", argument=key)
    items = prop.get("items")
    if isinstance(value, list) and isinstance(items, dict):
        for i, item in enumerate(value):
            _check_value(tool, f"{key}[{i}]", item, items)


def apply_aliases(arguments: dict[str, Any], aliases: dict[str, str]) -> dict[str, Any]:
    out = dict(arguments)
    for alias, canonical in aliases.items():
        if alias in out:
            value = out.pop(alias)
            out.setdefault(canonical, value)
    return out


def validate_arguments(
    tool: str,
    schema: dict[str, Any] | None,
    arguments: dict[str, Any] | None,
    *,
    aliases: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Return validated arguments with defaults applied.

    Raises MissingRequiredArgument / InvalidArgument before any handler runs.
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        raise InvalidArgument(f"Arguments for {tool} must be an object")
    args = apply_aliases(arguments, aliases or {})
    if not schema:
        return args

    properties: dict[str, Any] = schema.get("properties") or {}
    for key in schema.get("required") or []:
        if args.get(key) is None:
            raise MissingRequiredArgument.for_argument(tool, key)

    for key, value in list(args.items()):
        prop = properties.get(key)
        if prop is None:
            continue
        if value is None:
            # Explicit null is treated as "not provided".
            args.pop(key)
            continue
        _check_value(tool, key, value, prop)

    for key, prop in properties.items():
        if key not in args and isinstance(prop, dict) and "default" in prop:
            args[key] = copy.deepcopy(prop["default"])
    return args


__all__ = ["apply_aliases", "validate_arguments"]
