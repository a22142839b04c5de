"""
Connection lifecycle for the single DevTools automation session.

`ConnectionManager` is the only owner of the session handle. State moves
Disconnected → Connecting → Connected → Disconnected; there is never more than
one live session.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from .automator import AutomationSession, Automator, SessionFactory, close_quietly
from .cli import CliRunner, ProcessRunner, resolve_cli_path
from .config import DevtoolsConfig
from .console_log import EventLog
from .errors import AlreadyConnected, BackendCallFailed, MissingRequiredArgument, NotConnected, ToolNotFound

logger = logging.getLogger("mcp.wechat.connection")

PROJECT_REQUIRED_MESSAGE = "Project path is required. Connect first or provide projectPath."


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass
class ConnectionContext:
    """Defaults remembered from the last successful launch."""

    project_path: str | None = None
    cli_path: str | None = None


class ConnectionManager:
    def __init__(
        self,
        config: DevtoolsConfig | None = None,
        factory: SessionFactory | None = None,
        runner: ProcessRunner | None = None,
        event_log: EventLog | None = None,
    ) -> None:
        self.config = config or DevtoolsConfig.from_env()
        self.runner = runner or CliRunner(timeout=self.config.cli_timeout)
        self.factory = factory or Automator(self.config, self.runner)
        self.event_log = event_log or EventLog()
        self.context = ConnectionContext()
        self.state = ConnectionState.DISCONNECTED
        self._session: AutomationSession | None = None

    @property
    def session(self) -> AutomationSession | None:
        return self._session

    @property
    def is_connected(self) -> bool:
        return self._session is not None and self.state is ConnectionState.CONNECTED

    def require_session(self) -> AutomationSession:
        session = self._session
        if session is None or self.state is not ConnectionState.CONNECTED:
            raise NotConnected()
        return session

    def _ensure_disconnected(self) -> None:
        if self.state is not ConnectionState.DISCONNECTED or self._session is not None:
            raise AlreadyConnected()

    def _on_connected(self, session: AutomationSession) -> None:
        self.event_log.clear()
        try:
            session.on("console", self.event_log.on_console)
            session.on("exception", self.event_log.on_exception)
        except Exception:
            close_quietly(session)
            raise
        self._session = session
        self.state = ConnectionState.CONNECTED

    def launch(self, project_path: str, cli_path: str | None = None, port: int | None = None) -> str:
        """Attach to a DevTools already listening on the port, else launch one."""
        self._ensure_disconnected()
        port = int(port or self.config.port)
        endpoint = self.config.ws_endpoint_for(port)

        self.state = ConnectionState.CONNECTING
        try:
            try:
                session = self.factory.connect(endpoint)
                message = f"Connected to existing Mini Program instance on port {port}."
            except BackendCallFailed as exc:
                logger.info("attach_failed endpoint=%s reason=%s; launching", endpoint, exc)
                resolved_cli = resolve_cli_path(self.config, cli_path, self.context.cli_path)
                session = self.factory.launch(project_path, resolved_cli, port)
                message = "Successfully launched and connected to Mini Program."
            self._on_connected(session)
        except Exception:
            self.state = ConnectionState.DISCONNECTED
            raise

        if project_path:
            self.context.project_path = project_path
        if cli_path:
            self.context.cli_path = cli_path
        logger.info("connected via=launch project=%s port=%s", project_path, port)
        return message

    def connect(self, ws_endpoint: str | None = None) -> str:
        self._ensure_disconnected()
        endpoint = ws_endpoint or self.config.default_ws_endpoint

        self.state = ConnectionState.CONNECTING
        try:
            self._on_connected(self.factory.connect(endpoint))
        except Exception:
            self.state = ConnectionState.DISCONNECTED
            raise
        logger.info("connected via=connect endpoint=%s", endpoint)
        return "Successfully connected to Mini Program."

    def disconnect(self) -> str:
        session = self._session
        if session is None:
            self.state = ConnectionState.DISCONNECTED
            return "Not connected."
        self._session = None
        self.state = ConnectionState.DISCONNECTED
        session.disconnect()
        logger.info("disconnected")
        return "Disconnected."

    def shutdown(self) -> None:
        """Process exit: drop the session without surfacing errors."""
        session, self._session = self._session, None
        self.state = ConnectionState.DISCONNECTED
        close_quietly(session)

    def resolve_project(self, explicit: str | None = None) -> str:
        project = explicit or self.context.project_path
        if not project:
            raise MissingRequiredArgument(PROJECT_REQUIRED_MESSAGE, argument="projectPath")
        return project

    def run_cli(self, args: Sequence[str], cli_path: str | None = None) -> str:
        resolved = resolve_cli_path(self.config, cli_path, self.context.cli_path)
        if not resolved:
            raise ToolNotFound()
        return self.runner.run(resolved, list(args))


__all__ = ["PROJECT_REQUIRED_MESSAGE", "ConnectionContext", "ConnectionManager", "ConnectionState"]
