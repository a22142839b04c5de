"""DevTools command-line runner (build-npm, cloud functions, automation launch)."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from .config import DevtoolsConfig, expand_path
from .errors import ProcessExecutionFailed

logger = logging.getLogger("mcp.wechat.cli")


class ProcessRunner(Protocol):
    """Runs an executable with arguments and returns its stdout."""

    def run(self, executable: str, args: Sequence[str]) -> str: ...


def _decode(raw: bytes | str | None) -> str:
    if raw is None:
        return ""
    if isinstance(raw, bytes):
        return raw.decode(errors="replace")
    return raw


class CliRunner:
    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout

    def run(self, executable: str, args: Sequence[str]) -> str:
        cmd = [executable, *args]
        logger.info("cli_exec %s", " ".join(cmd))
        try:
            proc = subprocess.run(cmd, capture_output=True, timeout=self.timeout, stdin=subprocess.DEVNULL)
        except subprocess.TimeoutExpired as exc:
            raise ProcessExecutionFailed(
                f"Command timed out after {exc.timeout}s",
                stdout=_decode(exc.stdout),
                stderr=_decode(exc.stderr),
                command=cmd,
            ) from exc
        except OSError as exc:
            raise ProcessExecutionFailed(str(exc), command=cmd) from exc

        stdout = _decode(proc.stdout)
        stderr = _decode(proc.stderr)
        if proc.returncode != 0:
            raise ProcessExecutionFailed(
                f"Command failed: {' '.join(cmd)} (exit code {proc.returncode})",
                exit_code=proc.returncode,
                stdout=stdout,
                stderr=stderr,
                command=cmd,
            )
        return stdout


def _usable(candidate: str | None) -> str | None:
    if not candidate:
        return None
    path = expand_path(candidate)
    if Path(path).exists():
        return path
    return None


def resolve_cli_path(config: DevtoolsConfig, explicit: str | None = None, recorded: str | None = None) -> str | None:
    """Pick the first existing CLI: explicit → recorded → env → platform default."""
    for candidate in (explicit, recorded, config.cli_path, *config.default_cli_candidates()):
        found = _usable(candidate)
        if found:
            return found
    if explicit:
        logger.info("cli_path_missing path=%s", explicit)
    return None


def build_npm_args(project_path: str) -> list[str]:
    return ["build-npm", "--project", project_path]


def deploy_functions_args(project_path: str, env: str, names: Sequence[str], *, remote_install: bool = False) -> list[str]:
    args = ["cloud", "functions", "deploy", "--project", project_path, "--env", env, "--names", *names]
    if remote_install:
        args.append("--remote-npm-install")
    return args


def list_functions_args(project_path: str, env: str) -> list[str]:
    return ["cloud", "functions", "list", "--project", project_path, "--env", env]


def auto_args(project_path: str, port: int) -> list[str]:
    """Open the project with the automation port enabled."""
    return ["auto", "--project", project_path, "--auto-port", str(port)]


__all__ = [
    "CliRunner",
    "ProcessRunner",
    "auto_args",
    "build_npm_args",
    "deploy_functions_args",
    "list_functions_args",
    "resolve_cli_path",
]
