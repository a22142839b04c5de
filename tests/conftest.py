"""Shared in-memory stand-ins for the DevTools session, session factory and CLI runner."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from mcp_servers.wechat_devtools.config import DevtoolsConfig
from mcp_servers.wechat_devtools.connection import ConnectionManager
from mcp_servers.wechat_devtools.errors import BackendCallFailed
from mcp_servers.wechat_devtools.main import McpServer
from mcp_servers.wechat_devtools.server.types import ToolResult


class FakeElement:
    def __init__(
        self,
        session: FakeSession,
        selector: str,
        *,
        text: str = "",
        attributes: dict[str, Any] | None = None,
        styles: dict[str, Any] | None = None,
        wxml: str = "",
        outer_wxml: str = "",
    ) -> None:
        self.session = session
        self.selector = selector
        self._text = text
        self._attributes = attributes or {}
        self._styles = styles or {}
        self._wxml = wxml
        self._outer_wxml = outer_wxml

    def _record(self, name: str, *args: Any) -> None:
        self.session.calls.append((f"element.{name}", self.selector, *args))

    def text(self) -> Any:
        self._record("text")
        return self._text

    def wxml(self) -> Any:
        self._record("wxml")
        return self._wxml

    def outer_wxml(self) -> Any:
        self._record("outer_wxml")
        return self._outer_wxml

    def attribute(self, name: str) -> Any:
        self._record("attribute", name)
        return self._attributes.get(name)

    def style(self, name: str) -> Any:
        self._record("style", name)
        return self._styles.get(name)

    def tap(self) -> None:
        self._record("tap")

    def input(self, value: str) -> None:
        self._record("input", value)

    def trigger(self, event_name: str, detail: dict[str, Any]) -> None:
        self._record("trigger", event_name, detail)


class FakePage:
    """Page whose data round-trips through set_data/data like the real page."""

    def __init__(self, session: FakeSession, path: str = "pages/index/index", data: dict[str, Any] | None = None) -> None:
        self.session = session
        self.path = path
        self._data: dict[str, Any] = dict(data or {})
        self.elements: dict[str, FakeElement] = {}
        self.methods: dict[str, Any] = {}

    def add_element(self, selector: str, **kwargs: Any) -> FakeElement:
        element = FakeElement(self.session, selector, **kwargs)
        self.elements[selector] = element
        return element

    def data(self, path: str | None = None) -> Any:
        self.session.calls.append(("page.data", path))
        if not path:
            return copy.deepcopy(self._data)
        value: Any = self._data
        for part in path.split("."):
            value = value.get(part) if isinstance(value, dict) else None
        return copy.deepcopy(value)

    def set_data(self, data: dict[str, Any]) -> None:
        self.session.calls.append(("page.set_data", data))
        self._data.update(copy.deepcopy(data))

    def call_method(self, method: str, *args: Any) -> Any:
        self.session.calls.append(("page.call_method", method, args))
        handler = self.methods.get(method)
        return handler(*args) if callable(handler) else handler

    def query(self, selector: str) -> FakeElement | None:
        self.session.calls.append(("page.query", selector))
        return self.elements.get(selector)


class FakeSession:
    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.listeners: dict[str, Any] = {}
        self.page: FakePage | None = FakePage(self)
        self.page_error: Exception | None = None
        self.evaluate_result: Any = None
        self.evaluate_error: Exception | None = None
        self.pending_events: list[tuple[str, Any]] = []
        self.disconnected = False

    def on(self, event: str, callback: Any) -> None:
        self.listeners[event] = callback

    def emit(self, event: str, params: Any) -> None:
        self.listeners[event](params)

    def current_page(self) -> FakePage | None:
        self.calls.append(("current_page",))
        if self.page_error is not None:
            raise self.page_error
        return self.page

    def relaunch(self, url: str) -> FakePage | None:
        self.calls.append(("relaunch", url))
        if self.page is not None:
            self.page.path = url.split("?", 1)[0].lstrip("/")
        return self.page

    def evaluate(self, script: str, *args: Any) -> Any:
        self.calls.append(("evaluate", script, args))
        if self.evaluate_error is not None:
            raise self.evaluate_error
        if callable(self.evaluate_result):
            return self.evaluate_result(script, *args)
        return self.evaluate_result

    def drain_events(self) -> int:
        drained = 0
        while self.pending_events:
            event, params = self.pending_events.pop(0)
            self.emit(event, params)
            drained += 1
        return drained

    def disconnect(self) -> None:
        self.calls.append(("disconnect",))
        self.disconnected = True


class FakeFactory:
    def __init__(self, session: FakeSession | None = None) -> None:
        self.session = session or FakeSession()
        self.attach_error: Exception | None = None
        self.launch_error: Exception | None = None
        self.connect_calls: list[str] = []
        self.launch_calls: list[tuple[str, str | None, int]] = []

    def connect(self, ws_endpoint: str) -> FakeSession:
        self.connect_calls.append(ws_endpoint)
        if self.attach_error is not None:
            raise self.attach_error
        return self.session

    def launch(self, project_path: str, cli_path: str | None, port: int) -> FakeSession:
        self.launch_calls.append((project_path, cli_path, port))
        if self.launch_error is not None:
            raise self.launch_error
        return self.session


class FakeRunner:
    def __init__(self, output: str = "ok") -> None:
        self.output = output
        self.error: Exception | None = None
        self.runs: list[tuple[str, list[str]]] = []

    def run(self, executable: str, args: list[str]) -> str:
        self.runs.append((executable, list(args)))
        if self.error is not None:
            raise self.error
        return self.output


@pytest.fixture
def config() -> DevtoolsConfig:
    return DevtoolsConfig(port=9420, platform="linux")


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def factory(session: FakeSession) -> FakeFactory:
    return FakeFactory(session)


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def manager(config: DevtoolsConfig, factory: FakeFactory, runner: FakeRunner) -> ConnectionManager:
    return ConnectionManager(config, factory=factory, runner=runner)


@pytest.fixture
def connected(manager: ConnectionManager) -> ConnectionManager:
    manager.connect()
    return manager


@pytest.fixture
def server(manager: ConnectionManager) -> McpServer:
    return McpServer(manager)


@pytest.fixture
def cli_file(tmp_path) -> str:
    path = tmp_path / "cli"
    path.write_text("#!/bin/sh\n")
    return str(path)


def call(server: McpServer, tool: str, /, **arguments: Any) -> ToolResult:
    return server.registry.dispatch(tool, server.config, server.manager, arguments)


__all__ = ["BackendCallFailed", "FakeElement", "FakeFactory", "FakePage", "FakeRunner", "FakeSession", "call"]
