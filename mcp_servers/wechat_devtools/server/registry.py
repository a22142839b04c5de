"""
Tool registry and command dispatch.

`ToolRegistry.dispatch` is the boundary where every call becomes a `ToolResult`:
connection preconditions and argument validation run before any handler, and
no exception gets past it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..errors import DevtoolsError
from .definitions import ARGUMENT_ALIASES, TOOL_ALIASES, get_tool_schema
from .types import HandlerFunc, ToolResult, ToolSpec
from .validation import validate_arguments

if TYPE_CHECKING:
    from ..config import DevtoolsConfig
    from ..connection import ConnectionManager

logger = logging.getLogger("mcp.wechat.registry")


class ToolRegistry:
    """Registry for tool handlers with connection precondition checks."""

    def __init__(self) -> None:
        self._handlers: dict[str, ToolSpec] = {}
        self._aliases: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: HandlerFunc,
        requires_connection: bool = True,
        schema: dict[str, Any] | None = None,
    ) -> None:
        self._handlers[name] = ToolSpec(name, handler, requires_connection, schema)

    def register_many(self, handlers: dict[str, tuple[HandlerFunc, bool]]) -> None:
        """Register `name -> (handler, requires_connection)` entries with their advertised schemas."""
        for name, (handler, requires_connection) in handlers.items():
            self.register(name, handler, requires_connection, get_tool_schema(name))

    def alias(self, alias: str, target: str) -> None:
        if target not in self._handlers:
            raise KeyError(f"Unknown tool: {target}")
        self._aliases[alias] = target

    def resolve(self, name: str) -> str:
        return self._aliases.get(name, name)

    def get(self, name: str) -> ToolSpec | None:
        return self._handlers.get(self.resolve(name))

    def has(self, name: str) -> bool:
        return self.resolve(name) in self._handlers

    def dispatch(
        self,
        name: str,
        config: DevtoolsConfig,
        manager: ConnectionManager,
        arguments: dict[str, Any] | None,
    ) -> ToolResult:
        spec = self.get(name)
        if spec is None:
            return ToolResult.error(f"Unknown tool: {name}")

        try:
            if spec.requires_connection:
                manager.require_session()
            args = validate_arguments(spec.name, spec.schema, arguments, aliases=ARGUMENT_ALIASES)
            return spec.handler(config, manager, args)
        except DevtoolsError as exc:
            logger.info("tool_error tool=%s error=%s reason=%s", spec.name, type(exc).__name__, exc)
            return ToolResult.error(exc.message)
        except Exception as exc:  # noqa: BLE001
            logger.exception("tool_call_failed tool=%s", spec.name)
            return ToolResult.error(f"Error: {exc}")

    @property
    def tool_names(self) -> list[str]:
        return list(self._handlers.keys())

    def __len__(self) -> int:
        return len(self._handlers)


def create_default_registry() -> ToolRegistry:
    from .handlers import ALL_HANDLERS

    registry = ToolRegistry()
    registry.register_many(ALL_HANDLERS)
    for alias, target in TOOL_ALIASES.items():
        registry.alias(alias, target)
    return registry


__all__ = ["ToolRegistry", "create_default_registry", "logger"]
