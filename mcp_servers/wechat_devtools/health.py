"""Health report: current page, network status, recent console errors."""

from __future__ import annotations

import logging
from typing import Any

from .connection import ConnectionManager

logger = logging.getLogger("mcp.wechat.health")

RECENT_ERROR_LIMIT = 5
NO_RECENT_ERRORS = "No recent errors"

# Resolves instead of rejecting so a failed probe still yields a status.
NETWORK_TYPE_PROBE = """function () {
  return new Promise(function (resolve) {
    wx.getNetworkType({
      success: resolve,
      fail: function () { resolve({ networkType: 'fail' }); }
    });
  });
}"""


class HealthEvaluator:
    def __init__(self, manager: ConnectionManager) -> None:
        self.manager = manager

    def evaluate(self) -> dict[str, Any]:
        session = self.manager.session
        if session is None or not self.manager.is_connected:
            return {"connected": False}

        try:
            session.drain_events()
        except Exception as exc:  # noqa: BLE001
            logger.info("drain_events_failed: %s", exc)

        return {
            "connected": True,
            "pagePath": self._page_path(session),
            "networkType": self._network_type(session),
            "recentConsoleErrors": self.manager.event_log.recent_errors(RECENT_ERROR_LIMIT) or [NO_RECENT_ERRORS],
        }

    @staticmethod
    def _page_path(session: Any) -> str:
        try:
            page = session.current_page()
        except Exception as exc:  # noqa: BLE001
            return f"error_getting_path: {exc}"
        return page.path if page is not None else "no_page_found"

    @staticmethod
    def _network_type(session: Any) -> str:
        try:
            result = session.evaluate(NETWORK_TYPE_PROBE)
        except Exception as exc:  # noqa: BLE001
            return f"check_failed: {exc}"
        if isinstance(result, dict) and result.get("networkType"):
            return str(result["networkType"])
        return "unknown"


__all__ = ["NETWORK_TYPE_PROBE", "NO_RECENT_ERRORS", "HealthEvaluator"]
