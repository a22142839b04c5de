"""Tests for the connection lifecycle: attach, launch fallback, disconnect, CLI defaults."""

from __future__ import annotations

import pytest
from conftest import FakeFactory, FakeSession

from mcp_servers.wechat_devtools.config import DevtoolsConfig
from mcp_servers.wechat_devtools.connection import ConnectionManager, ConnectionState
from mcp_servers.wechat_devtools.errors import (
    AlreadyConnected,
    BackendCallFailed,
    MissingRequiredArgument,
    NotConnected,
    ToolNotFound,
)

# ═══════════════════════════════════════════════════════════════════════════════
# LAUNCH / CONNECT
# ═══════════════════════════════════════════════════════════════════════════════


def test_starts_disconnected(manager: ConnectionManager) -> None:
    assert manager.state is ConnectionState.DISCONNECTED
    assert manager.session is None
    with pytest.raises(NotConnected):
        manager.require_session()


def test_launch_attaches_to_running_instance(manager: ConnectionManager, factory: FakeFactory) -> None:
    message = manager.launch("/proj")
    assert message == "Connected to existing Mini Program instance on port 9420."
    assert factory.connect_calls == ["ws://localhost:9420"]
    assert factory.launch_calls == []
    assert manager.state is ConnectionState.CONNECTED
    assert manager.context.project_path == "/proj"


def test_launch_uses_explicit_port(manager: ConnectionManager, factory: FakeFactory) -> None:
    manager.launch("/proj", port=9555)
    assert factory.connect_calls == ["ws://localhost:9555"]


def test_launch_falls_back_to_new_instance(manager: ConnectionManager, factory: FakeFactory, cli_file: str) -> None:
    factory.attach_error = BackendCallFailed("Connection refused")

    message = manager.launch("/my/project", cli_path=cli_file)

    assert message == "Successfully launched and connected to Mini Program."
    assert factory.launch_calls == [("/my/project", cli_file, 9420)]
    assert manager.is_connected
    assert manager.context.project_path == "/my/project"
    assert manager.context.cli_path == cli_file


def test_launch_fallback_without_cli_passes_none(manager: ConnectionManager, factory: FakeFactory) -> None:
    factory.attach_error = BackendCallFailed("Connection refused")
    factory.launch_error = ToolNotFound()

    with pytest.raises(ToolNotFound):
        manager.launch("/proj")
    assert factory.launch_calls == [("/proj", None, 9420)]
    assert manager.state is ConnectionState.DISCONNECTED
    assert manager.session is None
    assert manager.context.project_path is None


def test_launch_twice_reports_already_connected(manager: ConnectionManager, factory: FakeFactory) -> None:
    manager.launch("/proj")
    with pytest.raises(AlreadyConnected):
        manager.launch("/proj")
    with pytest.raises(AlreadyConnected):
        manager.launch("/other")
    assert len(factory.connect_calls) == 1
    assert manager.context.project_path == "/proj"


def test_connect_defaults_endpoint(manager: ConnectionManager, factory: FakeFactory) -> None:
    assert manager.connect() == "Successfully connected to Mini Program."
    assert factory.connect_calls == ["ws://localhost:9420"]


def test_connect_never_launches(manager: ConnectionManager, factory: FakeFactory) -> None:
    factory.attach_error = BackendCallFailed("Connection refused")
    with pytest.raises(BackendCallFailed):
        manager.connect("ws://127.0.0.1:1234")
    assert factory.connect_calls == ["ws://127.0.0.1:1234"]
    assert factory.launch_calls == []
    assert manager.state is ConnectionState.DISCONNECTED


def test_connect_when_connected_raises(connected: ConnectionManager) -> None:
    with pytest.raises(AlreadyConnected):
        connected.connect()
    with pytest.raises(AlreadyConnected):
        connected.launch("/proj")


def test_single_session_across_interleavings(manager: ConnectionManager, factory: FakeFactory) -> None:
    sessions_seen = set()
    for step in ["connect", "launch", "disconnect", "launch", "connect", "disconnect", "disconnect", "connect"]:
        try:
            getattr(manager, step)(*(["/proj"] if step == "launch" else []))
        except AlreadyConnected:
            pass
        if manager.session is not None:
            sessions_seen.add(id(manager.session))
            assert manager.state is ConnectionState.CONNECTED
        else:
            assert manager.state is ConnectionState.DISCONNECTED
    assert len(sessions_seen) == 1


# ═══════════════════════════════════════════════════════════════════════════════
# EVENTS
# ═══════════════════════════════════════════════════════════════════════════════


def test_connection_subscribes_and_clears_log(manager: ConnectionManager, session: FakeSession) -> None:
    manager.connect()
    session.emit("console", {"type": "error", "args": ["first session"]})
    assert len(manager.event_log) == 1

    manager.disconnect()
    manager.connect()
    assert len(manager.event_log) == 0
    assert set(session.listeners) == {"console", "exception"}

    session.emit("exception", {"message": "boom"})
    assert manager.event_log.snapshot()[0].text == "boom"


# ═══════════════════════════════════════════════════════════════════════════════
# DISCONNECT
# ═══════════════════════════════════════════════════════════════════════════════


def test_disconnect_when_not_connected_is_informational(manager: ConnectionManager) -> None:
    assert manager.disconnect() == "Not connected."


def test_disconnect_keeps_context(manager: ConnectionManager, session: FakeSession, cli_file: str) -> None:
    manager.launch("/proj", cli_path=cli_file)
    assert manager.disconnect() == "Disconnected."
    assert session.disconnected
    assert manager.session is None
    assert manager.state is ConnectionState.DISCONNECTED
    assert manager.context.project_path == "/proj"
    assert manager.context.cli_path == cli_file


def test_disconnect_drops_handle_even_if_backend_fails(manager: ConnectionManager, session: FakeSession) -> None:
    manager.connect()

    def broken() -> None:
        raise BackendCallFailed("socket already closed")

    session.disconnect = broken  # type: ignore[method-assign]
    with pytest.raises(BackendCallFailed):
        manager.disconnect()
    assert manager.session is None
    assert manager.state is ConnectionState.DISCONNECTED


def test_shutdown_swallows_disconnect_errors(manager: ConnectionManager, session: FakeSession) -> None:
    manager.connect()

    def broken() -> None:
        raise RuntimeError("gone")

    session.disconnect = broken  # type: ignore[method-assign]
    manager.shutdown()
    assert manager.session is None


# ═══════════════════════════════════════════════════════════════════════════════
# CLI DEFAULTS
# ═══════════════════════════════════════════════════════════════════════════════


def test_resolve_project_prefers_explicit_then_context(manager: ConnectionManager) -> None:
    with pytest.raises(MissingRequiredArgument) as exc:
        manager.resolve_project(None)
    assert str(exc.value) == "Project path is required. Connect first or provide projectPath."

    manager.launch("/ctx")
    assert manager.resolve_project(None) == "/ctx"
    assert manager.resolve_project("/explicit") == "/explicit"


def test_run_cli_uses_context_cli(manager: ConnectionManager, runner, cli_file: str) -> None:
    manager.launch("/proj", cli_path=cli_file)
    manager.run_cli(["build-npm", "--project", "/proj"])
    assert runner.runs == [(cli_file, ["build-npm", "--project", "/proj"])]


def test_run_cli_missing_tool(manager: ConnectionManager, runner) -> None:
    with pytest.raises(ToolNotFound) as exc:
        manager.run_cli(["build-npm"], "/does/not/exist")
    assert "CLI not found" in str(exc.value)
    assert runner.runs == []


def test_default_factory_is_automator() -> None:
    from mcp_servers.wechat_devtools.automator import Automator

    mgr = ConnectionManager(DevtoolsConfig(platform="linux"))
    assert isinstance(mgr.factory, Automator)
