"""
DevTools CLI handlers: npm build and cloud function deploy/list.

The target project comes from the arguments or the last launched project; a
missing project is reported before any process is spawned.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ...cli import build_npm_args, deploy_functions_args, list_functions_args
from ..types import ToolResult

if TYPE_CHECKING:
    from ...config import DevtoolsConfig
    from ...connection import ConnectionManager


def handle_build_npm(config: DevtoolsConfig, manager: ConnectionManager, args: dict[str, Any]) -> ToolResult:
    project = manager.resolve_project(args.get("projectPath"))
    output = manager.run_cli(build_npm_args(project), args.get("toolPath"))
    return ToolResult.text(f"NPM Build Success:\n{output}")


def handle_deploy_functions(config: DevtoolsConfig, manager: ConnectionManager, args: dict[str, Any]) -> ToolResult:
    project = manager.resolve_project(args.get("projectPath"))
    cli_args = deploy_functions_args(
        project,
        args["env"],
        args["names"],
        remote_install=bool(args.get("remoteInstall")),
    )
    output = manager.run_cli(cli_args, args.get("toolPath"))
    return ToolResult.text(f"Cloud Functions Deployed:\n{output}")


def handle_list_functions(config: DevtoolsConfig, manager: ConnectionManager, args: dict[str, Any]) -> ToolResult:
    project = manager.resolve_project(args.get("projectPath"))
    output = manager.run_cli(list_functions_args(project, args["env"]), args.get("toolPath"))
    return ToolResult.text(output)


CLI_HANDLERS: dict[str, tuple] = {
    "build_npm": (handle_build_npm, True),
    "deploy_functions": (handle_deploy_functions, True),
    "list_functions": (handle_list_functions, True),
}
