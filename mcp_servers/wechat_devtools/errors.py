"""
Error taxonomy for the WeChat DevTools bridge.

Every error here is converted to an `isError` envelope at the registry boundary,
so the message text is what the caller sees.
"""

from __future__ import annotations

NOT_CONNECTED_MESSAGE = "Not connected to Mini Program. Use launch or connect first."
ALREADY_CONNECTED_MESSAGE = "Already connected to a Mini Program instance. Disconnect first."
TOOL_NOT_FOUND_MESSAGE = "WeChat DevTools CLI not found. Please specify toolPath."


class DevtoolsError(Exception):
    """Base class for errors surfaced to MCP callers."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class AlreadyConnected(DevtoolsError):
    def __init__(self, message: str = ALREADY_CONNECTED_MESSAGE) -> None:
        super().__init__(message)


class NotConnected(DevtoolsError):
    def __init__(self, message: str = NOT_CONNECTED_MESSAGE) -> None:
        super().__init__(message)


class ElementNotFound(DevtoolsError):
    def __init__(self, selector: str) -> None:
        super().__init__(f"Element not found: {selector}")
        self.selector = selector


class MissingRequiredArgument(DevtoolsError):
    def __init__(self, message: str, *, argument: str | None = None) -> None:
        super().__init__(message)
        self.argument = argument

    @classmethod
    def for_argument(cls, tool: str, argument: str, *, reason: str | None = None) -> MissingRequiredArgument:
        text = f"Missing required argument '{argument}' for {tool}"
        if reason:
            text += f" ({reason})"
        return cls(text, argument=argument)


class InvalidArgument(DevtoolsError):
    def __init__(self, message: str, *, argument: str | None = None) -> None:
        super().__init__(message)
        self.argument = argument


class BackendCallFailed(DevtoolsError):
    """Wraps a failure reported by the automation session (message kept verbatim)."""

    def __init__(self, message: str, *, method: str | None = None) -> None:
        super().__init__(message)
        self.method = method


class ToolNotFound(DevtoolsError):
    def __init__(self, message: str = TOOL_NOT_FOUND_MESSAGE) -> None:
        super().__init__(message)


class ProcessExecutionFailed(DevtoolsError):
    """The DevTools CLI exited unsuccessfully (or could not be spawned)."""

    def __init__(
        self,
        reason: str,
        *,
        exit_code: int | None = None,
        stdout: str = "",
        stderr: str = "",
        command: list[str] | None = None,
    ) -> None:
        super().__init__(f"CLI Execution Failed: {reason}\nStderr: {stderr}\nStdout: {stdout}")
        self.reason = reason
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        self.command = list(command or [])


__all__ = [
    "ALREADY_CONNECTED_MESSAGE",
    "NOT_CONNECTED_MESSAGE",
    "TOOL_NOT_FOUND_MESSAGE",
    "AlreadyConnected",
    "BackendCallFailed",
    "DevtoolsError",
    "ElementNotFound",
    "InvalidArgument",
    "MissingRequiredArgument",
    "NotConnected",
    "ProcessExecutionFailed",
    "ToolNotFound",
]
