"""
Connection lifecycle handlers: launch, connect, disconnect, health.

These run without a live session; everything else is gated by the registry.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ...health import HealthEvaluator
from ..types import ToolResult

if TYPE_CHECKING:
    from ...config import DevtoolsConfig
    from ...connection import ConnectionManager


def handle_launch(config: DevtoolsConfig, manager: ConnectionManager, args: dict[str, Any]) -> ToolResult:
    message = manager.launch(args["projectPath"], cli_path=args.get("toolPath"), port=args.get("port"))
    return ToolResult.text(message)


def handle_connect(config: DevtoolsConfig, manager: ConnectionManager, args: dict[str, Any]) -> ToolResult:
    return ToolResult.text(manager.connect(args.get("wsEndpoint")))


def handle_disconnect(config: DevtoolsConfig, manager: ConnectionManager, args: dict[str, Any]) -> ToolResult:
    return ToolResult.text(manager.disconnect())


def handle_check_health(config: DevtoolsConfig, manager: ConnectionManager, args: dict[str, Any]) -> ToolResult:
    return ToolResult.json(HealthEvaluator(manager).evaluate())


CONNECTION_HANDLERS: dict[str, tuple] = {
    "launch": (handle_launch, False),
    "connect": (handle_connect, False),
    "check_health": (handle_check_health, False),
    "disconnect": (handle_disconnect, False),
}
