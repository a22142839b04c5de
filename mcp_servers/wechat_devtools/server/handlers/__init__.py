"""
Tool handlers organized by domain.

All handlers follow the signature: (config, manager, arguments) -> ToolResult
and are registered as name -> (handler, requires_connection).
"""

from .cli import CLI_HANDLERS
from .connection import CONNECTION_HANDLERS
from .element import ELEMENT_HANDLERS
from .page import PAGE_HANDLERS

ALL_HANDLERS: dict[str, tuple] = {
    **CONNECTION_HANDLERS,
    **PAGE_HANDLERS,
    **ELEMENT_HANDLERS,
    **CLI_HANDLERS,
}

__all__ = [
    "ALL_HANDLERS",
    "CLI_HANDLERS",
    "CONNECTION_HANDLERS",
    "ELEMENT_HANDLERS",
    "PAGE_HANDLERS",
]
