"""
MCP tool definitions for the WeChat DevTools bridge.

Each entry is advertised verbatim by tools/list; the `inputSchema` is also what
the registry validates arguments against before a handler runs.
"""

from __future__ import annotations

import os
from typing import Any

_SCHEMA = "http://json-schema.org/draft-07/schema#"

_DEFAULT_PORT = os.environ.get("WECHAT_PORT") or "9420"

_JSON_ARG = {"anyOf": [{"type": "string"}, {"type": "number"}, {"type": "boolean"}, {"type": "object"}]}


def _schema(properties: dict[str, Any], required: list[str] | None = None) -> dict[str, Any]:
    return {
        "$schema": _SCHEMA,
        "type": "object",
        "properties": properties,
        "required": required or [],
        "additionalProperties": False,
    }


_PROJECT_PATH = {
    "type": "string",
    "description": "Absolute path to the project. Defaults to currently connected project.",
}
_TOOL_PATH = {"type": "string", "description": "Path to DevTools CLI."}

# ═══════════════════════════════════════════════════════════════════════════════
# CONNECTION
# ═══════════════════════════════════════════════════════════════════════════════

LAUNCH_TOOL: dict[str, Any] = {
    "name": "launch",
    "description": """Launch and connect to WeChat Developer Tools. [REQUIRED INITIAL STEP]
Use this tool first to start controlling a mini-program. Requires the absolute project path.
Attaches to a DevTools instance already listening on the automation port; otherwise launches one.""",
    "inputSchema": _schema(
        {
            "projectPath": {"type": "string", "description": "Absolute path to the mini-program project"},
            "toolPath": {
                "type": "string",
                "description": "Path to the WeChat DevTools CLI executable (optional, will try to auto-detect)",
            },
            "port": {"type": "integer", "description": "Port for automation (optional)"},
        },
        ["projectPath"],
    ),
}

CONNECT_TOOL: dict[str, Any] = {
    "name": "connect",
    "description": """Connect to an already running WeChat Developer Tools instance via WebSocket.
Use this if 'launch' fails or you want to attach to an existing session.""",
    "inputSchema": _schema(
        {
            "wsEndpoint": {
                "type": "string",
                "description": f"WebSocket endpoint (e.g., ws://localhost:9420). Defaults to ws://localhost:{_DEFAULT_PORT}",
            }
        }
    ),
}

CHECK_HEALTH_TOOL: dict[str, Any] = {
    "name": "check_health",
    "description": """[MANDATORY] Run this tool AFTER EVERY CODE CHANGE (edit/write) to verify the mini-program is running correctly.
Returns current page path, network status, and recent console errors. FIX ANY ERRORS IMMEDIATELY.
RESPONSE EXAMPLE:
{
  "connected": true,
  "pagePath": "pages/index/index",
  "networkType": "wifi",
  "recentConsoleErrors": ["No recent errors"]
}""",
    "inputSchema": _schema({}),
}

DISCONNECT_TOOL: dict[str, Any] = {
    "name": "disconnect",
    "description": "Disconnect from the mini-program.",
    "inputSchema": _schema({}),
}

# ═══════════════════════════════════════════════════════════════════════════════
# PAGE
# ═══════════════════════════════════════════════════════════════════════════════

NAVIGATE_TO_TOOL: dict[str, Any] = {
    "name": "navigate_to",
    "description": "Navigate to a specific page in the mini-program.",
    "inputSchema": _schema(
        {"url": {"type": "string", "description": "The URL of the page to navigate to (e.g., /pages/index/index)"}},
        ["url"],
    ),
}

GET_PAGE_DATA_TOOL: dict[str, Any] = {
    "name": "get_page_data",
    "description": "Get the data of the current page. Useful for verifying state changes after interactions or API calls.",
    "inputSchema": _schema(
        {
            "path": {
                "type": "string",
                "description": "The data path to retrieve (optional, returns full data if omitted)",
            }
        }
    ),
}

SET_PAGE_DATA_TOOL: dict[str, Any] = {
    "name": "set_page_data",
    "description": "Set data on the current page. Use this to mock state or trigger UI updates for testing.",
    "inputSchema": _schema(
        {"data": {"type": "object", "description": "The data object to set", "additionalProperties": True}},
        ["data"],
    ),
}

CALL_METHOD_TOOL: dict[str, Any] = {
    "name": "call_method",
    "description": "Call a method on the current page.",
    "inputSchema": _schema(
        {
            "method": {"type": "string", "description": "The name of the method to call"},
            "args": {
                "type": "array",
                "items": _JSON_ARG,
                "default": [],
                "description": "Arguments to pass to the method",
            },
        },
        ["method"],
    ),
}

EVALUATE_TOOL: dict[str, Any] = {
    "name": "evaluate",
    "description": """Execute arbitrary JavaScript code in the AppService context.
Use this for complex logic, accessing global objects (like 'wx'), or debugging.
The script is sent as a function declaration, e.g. "function () { return getApp().globalData }".""",
    "inputSchema": _schema(
        {
            "script": {"type": "string", "description": "The JavaScript function to execute."},
            "args": {
                "type": "array",
                "items": _JSON_ARG,
                "default": [],
                "description": "Arguments to pass to the function",
            },
        },
        ["script"],
    ),
}

CALL_CLOUD_FUNCTION_TOOL: dict[str, Any] = {
    "name": "call_cloud_function",
    "description": "Call a WeChat Cloud Function. Wrapper for wx.cloud.callFunction.",
    "inputSchema": _schema(
        {
            "name": {"type": "string", "description": "The name of the cloud function"},
            "data": {"type": "object", "description": "Data to pass to the function", "additionalProperties": True},
            "config": {
                "type": "object",
                "description": "Cloud configuration (e.g. env)",
                "additionalProperties": True,
            },
        },
        ["name"],
    ),
}

# ═══════════════════════════════════════════════════════════════════════════════
# ELEMENTS
# ═══════════════════════════════════════════════════════════════════════════════

ELEMENT_ACTIONS = ["text", "wxml", "outerWxml", "attribute", "style", "tap", "input", "trigger"]

GET_ELEMENT_TOOL: dict[str, Any] = {
    "name": "get_element",
    "description": """Get information about an element (text, wxml, attributes, computed style) or act on it.
USAGE:
- Text content: get_element(selector=".title")
- Structure: get_element(selector=".list", action="wxml") / action="outerWxml"
- Attribute: get_element(selector="image", action="attribute", attributeName="src")
- Style: get_element(selector=".title", action="style", styleName="color")
- Tap: get_element(selector="button", action="tap")
- Input: get_element(selector="input", action="input", value="hello")
- Event: get_element(selector="picker", action="trigger", eventName="change", detail={"value": 1})""",
    "inputSchema": _schema(
        {
            "selector": {"type": "string", "description": "The CSS selector of the element"},
            "action": {
                "type": "string",
                "enum": ELEMENT_ACTIONS,
                "default": "text",
                "description": "Action to perform (default: text)",
            },
            "attributeName": {"type": "string", "description": "Attribute name (required if action is 'attribute')"},
            "styleName": {"type": "string", "description": "Style name (required if action is 'style')"},
            "value": {"type": "string", "description": "Text value (action 'input')"},
            "eventName": {"type": "string", "description": "Event name (required if action is 'trigger')"},
            "detail": {
                "type": "object",
                "description": "Event detail object (action 'trigger')",
                "additionalProperties": True,
            },
        },
        ["selector"],
    ),
}

TAP_ELEMENT_TOOL: dict[str, Any] = {
    "name": "tap_element",
    "description": "Tap (click) an element on the current page.",
    "inputSchema": _schema(
        {"selector": {"type": "string", "description": "The CSS selector of the element to tap"}},
        ["selector"],
    ),
}

INPUT_TEXT_TOOL: dict[str, Any] = {
    "name": "input_text",
    "description": "Input text into an element (e.g., <input>, <textarea>).",
    "inputSchema": _schema(
        {
            "selector": {"type": "string", "description": "The CSS selector of the input element"},
            "value": {"type": "string", "description": "The text value to input"},
        },
        ["selector", "value"],
    ),
}

TRIGGER_EVENT_TOOL: dict[str, Any] = {
    "name": "trigger_event",
    "description": "Trigger a custom event on an element.",
    "inputSchema": _schema(
        {
            "selector": {"type": "string", "description": "The CSS selector of the element"},
            "eventName": {"type": "string", "description": "The name of the event to trigger (e.g., 'change')"},
            "detail": {"type": "object", "description": "Event detail object", "additionalProperties": True},
        },
        ["selector", "eventName"],
    ),
}

# ═══════════════════════════════════════════════════════════════════════════════
# CLI
# ═══════════════════════════════════════════════════════════════════════════════

BUILD_NPM_TOOL: dict[str, Any] = {
    "name": "build_npm",
    "description": "Build NPM dependencies for the mini-program using the CLI tool.",
    "inputSchema": _schema({"projectPath": _PROJECT_PATH, "toolPath": _TOOL_PATH}),
}

DEPLOY_FUNCTIONS_TOOL: dict[str, Any] = {
    "name": "deploy_functions",
    "description": "Deploy cloud functions using the CLI tool.",
    "inputSchema": _schema(
        {
            "env": {"type": "string", "description": "Cloud environment ID"},
            "names": {
                "type": "array",
                "items": {"type": "string"},
                "description": "List of cloud function names to deploy",
            },
            "remoteInstall": {
                "type": "boolean",
                "default": False,
                "description": "Install npm dependencies in the cloud",
            },
            "projectPath": _PROJECT_PATH,
            "toolPath": _TOOL_PATH,
        },
        ["env", "names"],
    ),
}

LIST_FUNCTIONS_TOOL: dict[str, Any] = {
    "name": "list_functions",
    "description": "List cloud functions in an environment using the CLI tool.",
    "inputSchema": _schema(
        {
            "env": {"type": "string", "description": "Cloud environment ID"},
            "projectPath": _PROJECT_PATH,
            "toolPath": _TOOL_PATH,
        },
        ["env"],
    ),
}

TOOL_DEFINITIONS: list[dict[str, Any]] = [
    LAUNCH_TOOL,
    CONNECT_TOOL,
    CHECK_HEALTH_TOOL,
    NAVIGATE_TO_TOOL,
    GET_PAGE_DATA_TOOL,
    SET_PAGE_DATA_TOOL,
    GET_ELEMENT_TOOL,
    TAP_ELEMENT_TOOL,
    INPUT_TEXT_TOOL,
    TRIGGER_EVENT_TOOL,
    CALL_METHOD_TOOL,
    EVALUATE_TOOL,
    CALL_CLOUD_FUNCTION_TOOL,
    BUILD_NPM_TOOL,
    DEPLOY_FUNCTIONS_TOOL,
    LIST_FUNCTIONS_TOOL,
    DISCONNECT_TOOL,
]

# Accepted from older clients, not advertised.
TOOL_ALIASES: dict[str, str] = {
    "cloud_functions_deploy": "deploy_functions",
    "cloud_functions_list": "list_functions",
}

ARGUMENT_ALIASES: dict[str, str] = {
    "cliPath": "toolPath",
    "remoteNpmInstall": "remoteInstall",
}


def get_tool_schema(name: str) -> dict[str, Any] | None:
    for tool in TOOL_DEFINITIONS:
        if tool["name"] == name:
            return tool["inputSchema"]
    return None


__all__ = [
    "ARGUMENT_ALIASES",
    "ELEMENT_ACTIONS",
    "TOOL_ALIASES",
    "TOOL_DEFINITIONS",
    "get_tool_schema",
]
