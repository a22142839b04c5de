"""
Page-level handlers: navigation, page data, page methods and App-service evaluation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ...errors import BackendCallFailed
from ..types import ToolResult

if TYPE_CHECKING:
    from ...automator import AutomationSession, MiniProgramPage
    from ...config import DevtoolsConfig
    from ...connection import ConnectionManager

CLOUD_FUNCTION_CALL = """function (options) {
  return wx.cloud.callFunction(options).catch(function (err) {
    return { _isError: true, message: err && err.message ? err.message : String(err), err: err };
  });
}"""


def current_page(session: AutomationSession) -> MiniProgramPage:
    page = session.current_page()
    if page is None:
        raise BackendCallFailed("No current page")
    return page


def handle_navigate_to(config: DevtoolsConfig, manager: ConnectionManager, args: dict[str, Any]) -> ToolResult:
    url = args["url"]
    page = manager.require_session().relaunch(url)
    path = page.path if page is not None else "unknown"
    return ToolResult.text(f"Navigated to {url}. Path: {path}")


def handle_get_page_data(config: DevtoolsConfig, manager: ConnectionManager, args: dict[str, Any]) -> ToolResult:
    page = current_page(manager.require_session())
    return ToolResult.json(page.data(args.get("path")))


def handle_set_page_data(config: DevtoolsConfig, manager: ConnectionManager, args: dict[str, Any]) -> ToolResult:
    page = current_page(manager.require_session())
    page.set_data(args["data"])
    return ToolResult.text("Data set successfully.")


def handle_call_method(config: DevtoolsConfig, manager: ConnectionManager, args: dict[str, Any]) -> ToolResult:
    page = current_page(manager.require_session())
    return ToolResult.json(page.call_method(args["method"], *args.get("args", [])))


def handle_evaluate(config: DevtoolsConfig, manager: ConnectionManager, args: dict[str, Any]) -> ToolResult:
    session = manager.require_session()
    return ToolResult.json(session.evaluate(args["script"], *args.get("args", [])))


def handle_call_cloud_function(config: DevtoolsConfig, manager: ConnectionManager, args: dict[str, Any]) -> ToolResult:
    options: dict[str, Any] = {"name": args["name"]}
    if args.get("data") is not None:
        options["data"] = args["data"]
    if args.get("config") is not None:
        options["config"] = args["config"]

    result = manager.require_session().evaluate(CLOUD_FUNCTION_CALL, options)
    if isinstance(result, dict) and result.get("_isError"):
        return ToolResult.error(f"Cloud function failed: {result.get('message')}")
    return ToolResult.json(result)


PAGE_HANDLERS: dict[str, tuple] = {
    "navigate_to": (handle_navigate_to, True),
    "get_page_data": (handle_get_page_data, True),
    "set_page_data": (handle_set_page_data, True),
    "call_method": (handle_call_method, True),
    "evaluate": (handle_evaluate, True),
    "call_cloud_function": (handle_call_cloud_function, True),
}
