"""
Element handlers: inspect or act on the first element matching a selector.

Argument checks for the requested action happen before the page is touched;
the element is resolved before any action is attempted.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ...errors import ElementNotFound, InvalidArgument, MissingRequiredArgument
from ..types import ToolResult
from .page import current_page

if TYPE_CHECKING:
    from ...automator import MiniProgramElement
    from ...config import DevtoolsConfig
    from ...connection import ConnectionManager

_REQUIRED_FOR_ACTION: dict[str, str] = {
    "attribute": "attributeName",
    "style": "styleName",
    "trigger": "eventName",
}


def resolve_element(manager: ConnectionManager, selector: str) -> MiniProgramElement:
    page = current_page(manager.require_session())
    element = page.query(selector)
    if element is None:
        raise ElementNotFound(selector)
    return element


def _tap(manager: ConnectionManager, selector: str) -> ToolResult:
    resolve_element(manager, selector).tap()
    return ToolResult.text(f"Tapped element: {selector}")


def _input(manager: ConnectionManager, selector: str, value: str | None) -> ToolResult:
    value = value or ""
    resolve_element(manager, selector).input(value)
    return ToolResult.text(f'Input value "{value}" into {selector}')


def _trigger(manager: ConnectionManager, selector: str, event_name: str, detail: dict[str, Any] | None) -> ToolResult:
    resolve_element(manager, selector).trigger(event_name, detail or {})
    return ToolResult.text(f'Triggered event "{event_name}" on {selector}')


def handle_get_element(config: DevtoolsConfig, manager: ConnectionManager, args: dict[str, Any]) -> ToolResult:
    selector = args["selector"]
    action = args.get("action") or "text"

    required = _REQUIRED_FOR_ACTION.get(action)
    if required and not args.get(required):
        raise MissingRequiredArgument.for_argument(
            "get_element", required, reason=f"required when action is '{action}'"
        )

    if action == "tap":
        return _tap(manager, selector)
    if action == "input":
        return _input(manager, selector, args.get("value"))
    if action == "trigger":
        return _trigger(manager, selector, args["eventName"], args.get("detail"))

    inspectors = {
        "text": lambda el: el.text(),
        "wxml": lambda el: el.wxml(),
        "outerWxml": lambda el: el.outer_wxml(),
        "attribute": lambda el: el.attribute(args["attributeName"]),
        "style": lambda el: el.style(args["styleName"]),
    }
    inspect = inspectors.get(action)
    if inspect is None:
        raise InvalidArgument(f"Invalid action for get_element: {action}", argument="action")

    element = resolve_element(manager, selector)
    return ToolResult.plain(inspect(element))


def handle_tap_element(config: DevtoolsConfig, manager: ConnectionManager, args: dict[str, Any]) -> ToolResult:
    return _tap(manager, args["selector"])


def handle_input_text(config: DevtoolsConfig, manager: ConnectionManager, args: dict[str, Any]) -> ToolResult:
    return _input(manager, args["selector"], args.get("value"))


def handle_trigger_event(config: DevtoolsConfig, manager: ConnectionManager, args: dict[str, Any]) -> ToolResult:
    return _trigger(manager, args["selector"], args["eventName"], args.get("detail"))


ELEMENT_HANDLERS: dict[str, tuple] = {
    "get_element": (handle_get_element, True),
    "tap_element": (handle_tap_element, True),
    "input_text": (handle_input_text, True),
    "trigger_event": (handle_trigger_event, True),
}
