from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_PORT = 9420

DEFAULT_CLI_CANDIDATES: dict[str, list[str]] = {
    "darwin": ["/Applications/wechatwebdevtools.app/Contents/MacOS/cli"],
    "win32": ["C:\\Program Files (x86)\\Tencent\\WeChatDevTools\\cli.bat"],
}


def expand_path(raw: str) -> str:
    return str(Path(raw).expanduser())


def _optional_float(raw: str | None) -> float | None:
    if raw is None or not raw.strip():
        return None
    value = float(raw)
    return value if value > 0 else None


@dataclass
class DevtoolsConfig:
    port: int = DEFAULT_PORT
    cli_path: str | None = None
    connect_timeout: float = 5.0
    launch_timeout: float = 30.0
    cli_timeout: float | None = None
    # None means a backend call waits as long as the DevTools takes to answer.
    rpc_timeout: float | None = None
    platform: str = field(default_factory=lambda: sys.platform)

    @property
    def default_ws_endpoint(self) -> str:
        return self.ws_endpoint_for(self.port)

    @staticmethod
    def ws_endpoint_for(port: int) -> str:
        return f"ws://localhost:{port}"

    def default_cli_candidates(self) -> list[str]:
        return list(DEFAULT_CLI_CANDIDATES.get(self.platform, []))

    @classmethod
    def from_env(cls) -> DevtoolsConfig:
        port = int(os.environ.get("WECHAT_PORT") or DEFAULT_PORT)
        cli_raw = (os.environ.get("WECHAT_CLI_PATH") or "").strip()
        return cls(
            port=port,
            cli_path=expand_path(cli_raw) if cli_raw else None,
            connect_timeout=float(os.environ.get("WECHAT_CONNECT_TIMEOUT") or 5.0),
            launch_timeout=float(os.environ.get("WECHAT_LAUNCH_TIMEOUT") or 30.0),
            cli_timeout=_optional_float(os.environ.get("WECHAT_CLI_TIMEOUT")),
            rpc_timeout=_optional_float(os.environ.get("WECHAT_RPC_TIMEOUT")),
        )
