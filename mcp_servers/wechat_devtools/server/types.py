"""
Type definitions for MCP tool responses and handlers.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..config import DevtoolsConfig
    from ..connection import ConnectionManager

UNDEFINED_TEXT = "undefined"


def render_json(value: Any) -> str:
    """Pretty JSON for structured results; a missing value renders as `undefined`."""
    if value is None:
        return UNDEFINED_TEXT
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def render_plain(value: Any) -> str:
    """String coercion for element inspection results."""
    if value is None:
        return UNDEFINED_TEXT
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


@dataclass(slots=True)
class ToolContent:
    """Single content item in tool response."""

    type: str
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "text": self.text}


@dataclass(slots=True)
class ToolResult:
    """The `{isError, content}` envelope returned for every tool call."""

    content: list[ToolContent] = field(default_factory=list)
    is_error: bool = False
    # Raw payload for in-process callers and tests; not part of the wire format.
    data: Any | None = None

    @classmethod
    def text(cls, text: str) -> ToolResult:
        return cls(content=[ToolContent(type="text", text=text or "")])

    @classmethod
    def error(cls, message: str) -> ToolResult:
        return cls(content=[ToolContent(type="text", text=message)], is_error=True)

    @classmethod
    def json(cls, data: Any) -> ToolResult:
        return cls(content=[ToolContent(type="text", text=render_json(data))], data=data)

    @classmethod
    def plain(cls, value: Any) -> ToolResult:
        return cls(content=[ToolContent(type="text", text=render_plain(value))], data=value)

    @property
    def text_content(self) -> str:
        return "\n".join(c.text for c in self.content)

    def to_content_list(self) -> list[dict[str, Any]]:
        return [c.to_dict() for c in self.content]

    def to_payload(self) -> dict[str, Any]:
        return {"content": self.to_content_list(), "isError": self.is_error}


HandlerFunc = Callable[["DevtoolsConfig", "ConnectionManager", dict[str, Any]], ToolResult]


@dataclass(slots=True, frozen=True)
class ToolSpec:
    """Specification for a registered tool."""

    name: str
    handler: HandlerFunc
    requires_connection: bool = True
    schema: dict[str, Any] | None = None
