"""
Automation session capability for the WeChat DevTools automation port.

The bridge core only talks to the protocols declared at the top of this module
(`AutomationSession`, `MiniProgramPage`, `MiniProgramElement`, `SessionFactory`).
`Automator` is the concrete factory: it attaches to (or launches) a DevTools
instance and speaks its JSON WebSocket protocol through `AutomatorConnection`.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from contextlib import suppress
from typing import Any, Protocol

import websocket

from .cli import CliRunner, ProcessRunner, auto_args
from .config import DevtoolsConfig
from .errors import BackendCallFailed, ToolNotFound

logger = logging.getLogger("mcp.wechat.automator")

EventCallback = Callable[[Any], None]


# ═══════════════════════════════════════════════════════════════════════════════
# CAPABILITY INTERFACES
# ═══════════════════════════════════════════════════════════════════════════════


class MiniProgramElement(Protocol):
    def text(self) -> Any: ...

    def wxml(self) -> Any: ...

    def outer_wxml(self) -> Any: ...

    def attribute(self, name: str) -> Any: ...

    def style(self, name: str) -> Any: ...

    def tap(self) -> None: ...

    def input(self, value: str) -> None: ...

    def trigger(self, event_name: str, detail: dict[str, Any]) -> None: ...


class MiniProgramPage(Protocol):
    path: str

    def data(self, path: str | None = None) -> Any: ...

    def set_data(self, data: dict[str, Any]) -> None: ...

    def call_method(self, method: str, *args: Any) -> Any: ...

    def query(self, selector: str) -> MiniProgramElement | None: ...


class AutomationSession(Protocol):
    def current_page(self) -> MiniProgramPage | None: ...

    def relaunch(self, url: str) -> MiniProgramPage | None: ...

    def evaluate(self, script: str, *args: Any) -> Any: ...

    def on(self, event: str, callback: EventCallback) -> None: ...

    def drain_events(self) -> int: ...

    def disconnect(self) -> None: ...


class SessionFactory(Protocol):
    def connect(self, ws_endpoint: str) -> AutomationSession: ...

    def launch(self, project_path: str, cli_path: str | None, port: int) -> AutomationSession: ...


# ═══════════════════════════════════════════════════════════════════════════════
# WEBSOCKET CONNECTION
# ═══════════════════════════════════════════════════════════════════════════════


class AutomatorConnection:
    """Request/response channel to the DevTools automation WebSocket.

    Frames without an `id` are events; they are handed to the registered
    handler for their method whenever they are read off the socket.
    """

    def __init__(self, ws_url: str, *, connect_timeout: float = 5.0, timeout: float | None = None) -> None:
        self.ws = websocket.create_connection(ws_url, timeout=connect_timeout)
        self.ws_url = ws_url
        self.timeout = timeout
        self._next_id = 1
        self._handlers: dict[str, EventCallback] = {}
        self._closed = False

    def set_event_handler(self, method: str, callback: EventCallback | None) -> None:
        if callback is None:
            self._handlers.pop(method, None)
        else:
            self._handlers[method] = callback

    def _dispatch_event(self, event: dict[str, Any]) -> None:
        handler = self._handlers.get(event.get("method", ""))
        if handler is None:
            return
        try:
            handler(event.get("params"))
        except Exception:  # noqa: BLE001
            # A broken sink must never fail the request that happened to read the event.
            logger.exception("event_handler_failed method=%s", event.get("method"))

    def send(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Send a command and wait for its response."""
        if self._closed:
            raise BackendCallFailed("Connection closed", method=method)
        msg_id = self._next_id
        self._next_id += 1
        msg: dict[str, Any] = {"id": msg_id, "method": method, "params": params or {}}
        try:
            self.ws.send(json.dumps(msg, ensure_ascii=False))
        except (OSError, websocket.WebSocketException) as exc:
            raise BackendCallFailed(str(exc), method=method) from exc
        return self._recv_until(msg_id, method)

    def _recv(self, timeout: float | None) -> str:
        self.ws.settimeout(timeout)
        return self.ws.recv()

    def _recv_until(self, expected_id: int, method: str) -> dict[str, Any]:
        deadline = time.time() + self.timeout if self.timeout else None
        while True:
            remaining = None
            if deadline is not None:
                remaining = deadline - time.time()
                if remaining <= 0:
                    raise BackendCallFailed(f"{method} timed out after {self.timeout}s", method=method)
            try:
                raw = self._recv(min(0.5, remaining) if remaining is not None else None)
            except websocket.WebSocketTimeoutException:
                continue
            except (OSError, websocket.WebSocketException) as exc:
                raise BackendCallFailed(str(exc) or "Connection lost", method=method) from exc

            try:
                data = json.loads(raw)
            except (TypeError, json.JSONDecodeError):
                continue
            if not isinstance(data, dict):
                continue

            if "id" not in data and isinstance(data.get("method"), str):
                self._dispatch_event(data)
                continue

            if data.get("id") == expected_id:
                error = data.get("error")
                if error:
                    message = error.get("message") if isinstance(error, dict) else None
                    raise BackendCallFailed(str(message or error), method=method)
                result = data.get("result")
                return result if isinstance(result, dict) else {}

    def drain_events(self, *, max_messages: int = 200) -> int:
        """Route already-buffered events without blocking."""
        drained = 0
        previous = self.ws.gettimeout()
        try:
            for _ in range(max_messages):
                try:
                    raw = self._recv(0.0)
                except (OSError, websocket.WebSocketException):
                    break
                try:
                    data = json.loads(raw)
                except (TypeError, json.JSONDecodeError):
                    continue
                if isinstance(data, dict) and "id" not in data and isinstance(data.get("method"), str):
                    self._dispatch_event(data)
                    drained += 1
        finally:
            with suppress(OSError, websocket.WebSocketException):
                self.ws.settimeout(previous)
        return drained

    def close(self) -> None:
        self._closed = True
        self._handlers.clear()
        try:
            self.ws.close()
        except (OSError, websocket.WebSocketException) as exc:
            raise BackendCallFailed(str(exc), method="close") from exc


# ═══════════════════════════════════════════════════════════════════════════════
# SESSION OBJECTS
# ═══════════════════════════════════════════════════════════════════════════════

_MISSING_ELEMENT_MARKERS = ("not found", "not exist", "no such element")


class Element:
    def __init__(self, connection: AutomatorConnection, page_id: Any, element_id: Any, tag_name: str = "") -> None:
        self._conn = connection
        self.page_id = page_id
        self.element_id = element_id
        self.tag_name = tag_name

    def _send(self, method: str, **params: Any) -> dict[str, Any]:
        return self._conn.send(method, {"elementId": self.element_id, "pageId": self.page_id, **params})

    @staticmethod
    def _first(result: dict[str, Any], key: str) -> Any:
        values = result.get(key)
        if isinstance(values, list):
            return values[0] if values else None
        return values

    def text(self) -> Any:
        return self._first(self._send("Element.getDOMProperties", names=["innerText"]), "properties")

    def wxml(self) -> Any:
        return self._send("Element.getWXML", type="inner").get("wxml")

    def outer_wxml(self) -> Any:
        return self._send("Element.getWXML", type="outer").get("wxml")

    def attribute(self, name: str) -> Any:
        return self._first(self._send("Element.getAttributes", names=[name]), "attributes")

    def style(self, name: str) -> Any:
        return self._first(self._send("Element.getStyles", names=[name]), "styles")

    def tap(self) -> None:
        self._send("Element.tap")

    def input(self, value: str) -> None:
        self._send("Element.callFunction", functionName="input.input", args=[value])

    def trigger(self, event_name: str, detail: dict[str, Any]) -> None:
        self._send("Element.triggerEvent", type=event_name, detail=detail)


class Page:
    def __init__(self, connection: AutomatorConnection, page_id: Any, path: str, query: dict[str, Any] | None = None) -> None:
        self._conn = connection
        self.page_id = page_id
        self.path = path
        self.query_params = dict(query or {})

    def data(self, path: str | None = None) -> Any:
        params: dict[str, Any] = {"pageId": self.page_id}
        if path:
            params["path"] = path
        return self._conn.send("Page.getData", params).get("data")

    def set_data(self, data: dict[str, Any]) -> None:
        self._conn.send("Page.setData", {"pageId": self.page_id, "data": data})

    def call_method(self, method: str, *args: Any) -> Any:
        return self._conn.send("Page.callMethod", {"pageId": self.page_id, "method": method, "args": list(args)}).get(
            "result"
        )

    def query(self, selector: str) -> Element | None:
        try:
            result = self._conn.send("Page.getElement", {"pageId": self.page_id, "selector": selector})
        except BackendCallFailed as exc:
            if any(marker in exc.message.lower() for marker in _MISSING_ELEMENT_MARKERS):
                return None
            raise
        element_id = result.get("elementId")
        if not element_id:
            return None
        return Element(self._conn, self.page_id, element_id, str(result.get("tagName") or ""))


def _normalize_page_path(url: str) -> str:
    return url.split("?", 1)[0].strip().lstrip("/")


class MiniProgram:
    """A live automation session with one DevTools instance."""

    def __init__(self, connection: AutomatorConnection, *, settle_timeout: float = 3.0) -> None:
        self._conn = connection
        self.settle_timeout = settle_timeout
        self._log_enabled = False

    @property
    def ws_endpoint(self) -> str:
        return self._conn.ws_url

    def on(self, event: str, callback: EventCallback) -> None:
        if event == "console":
            self._conn.set_event_handler("App.logAdded", callback)
            if not self._log_enabled:
                self._conn.send("App.enableLog")
                self._log_enabled = True
        elif event == "exception":
            self._conn.set_event_handler("App.exceptionThrown", callback)
        else:
            raise ValueError(f"Unsupported event: {event}")

    def current_page(self) -> Page | None:
        result = self._conn.send("App.getCurrentPage")
        if not result.get("pageId") and not result.get("path"):
            return None
        return Page(self._conn, result.get("pageId"), str(result.get("path") or ""), result.get("query"))

    def call_wx_method(self, method: str, *args: Any) -> Any:
        return self._conn.send("App.callWxMethod", {"method": method, "args": list(args)}).get("result")

    def relaunch(self, url: str) -> Page | None:
        self.call_wx_method("reLaunch", {"url": url})
        # The page stack swaps asynchronously; wait until the target page is current.
        target = _normalize_page_path(url)
        deadline = time.time() + self.settle_timeout
        page = self.current_page()
        while page is not None and _normalize_page_path(page.path) != target and time.time() < deadline:
            time.sleep(0.1)
            page = self.current_page()
        return page

    def evaluate(self, script: str, *args: Any) -> Any:
        return self._conn.send("App.callFunction", {"functionDeclaration": script, "args": list(args)}).get("result")

    def drain_events(self) -> int:
        return self._conn.drain_events()

    def disconnect(self) -> None:
        self._conn.close()


# ═══════════════════════════════════════════════════════════════════════════════
# FACTORY
# ═══════════════════════════════════════════════════════════════════════════════


class Automator:
    """Creates `MiniProgram` sessions by attaching to or launching DevTools."""

    def __init__(self, config: DevtoolsConfig, runner: ProcessRunner | None = None) -> None:
        self.config = config
        self.runner = runner or CliRunner(timeout=config.cli_timeout)

    def connect(self, ws_endpoint: str) -> MiniProgram:
        try:
            conn = AutomatorConnection(
                ws_endpoint,
                connect_timeout=self.config.connect_timeout,
                timeout=self.config.rpc_timeout,
            )
        except (OSError, websocket.WebSocketException) as exc:
            raise BackendCallFailed(f"Failed connecting to {ws_endpoint}: {exc}") from exc
        logger.info("automator_connected endpoint=%s", ws_endpoint)
        return MiniProgram(conn)

    def launch(self, project_path: str, cli_path: str | None, port: int) -> MiniProgram:
        if not cli_path:
            raise ToolNotFound()
        self.runner.run(cli_path, auto_args(project_path, port))

        endpoint = self.config.ws_endpoint_for(port)
        deadline = time.time() + self.config.launch_timeout
        last_error: BackendCallFailed | None = None
        while True:
            try:
                return self.connect(endpoint)
            except BackendCallFailed as exc:
                last_error = exc
            if time.time() >= deadline:
                break
            time.sleep(0.5)
        raise BackendCallFailed(f"Failed to launch DevTools for {project_path}: {last_error}")


def close_quietly(session: AutomationSession | None) -> None:
    if session is None:
        return
    with suppress(Exception):
        session.disconnect()


__all__ = [
    "AutomationSession",
    "Automator",
    "AutomatorConnection",
    "Element",
    "MiniProgram",
    "MiniProgramElement",
    "MiniProgramPage",
    "Page",
    "SessionFactory",
    "close_quietly",
]
