"""HTTP client for the filter core.

Commands are sent with a ping-then-command pattern: the core is probed
first so a dead or restarted core yields a clear message instead of a
half-applied command.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from langfilter.config import settings

_log = logging.getLogger("langfilter.client")

CANNOT_REACH = "Cannot reach the filter core. Is it running?"
CONNECTION_LOST = "Connection lost. Please retry."


@dataclass
class CommandResult:
    success: bool
    response: dict[str, Any] | None = None
    error: str | None = None


class CoreClient:
    def __init__(self, base_url: str | None = None, timeout: float = 10.0) -> None:
        self.base_url = (base_url or settings.core_url).rstrip("/")
        self.timeout = timeout

    def ping(self) -> bool:
        """Return ``True`` if the core answered the liveness probe."""
        try:
            resp = httpx.get(f"{self.base_url}/ping", timeout=self.timeout)
            resp.raise_for_status()
            return resp.json().get("ok") is True
        except Exception as exc:
            _log.debug("Ping to %s failed: %s", self.base_url, exc)
            return False

    def send_command(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> CommandResult:
        if not self.ping():
            return CommandResult(success=False, error=CANNOT_REACH)

        try:
            resp = httpx.request(
                method,
                f"{self.base_url}{path}",
                json=payload,
                params=params,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            return CommandResult(success=True, response=resp.json())
        except Exception as exc:
            _log.error("Command %s %s failed: %s", method, path, exc)
            return CommandResult(success=False, error=CONNECTION_LOST)

    def rescan(self, wait: bool = False) -> CommandResult:
        return self.send_command("POST", "/rescan", params={"wait": wait})

    def update_settings(self, snapshot: dict[str, Any], wait: bool = False) -> CommandResult:
        return self.send_command("POST", "/settings", payload=snapshot, params={"wait": wait})

    def classify(self, text: str) -> CommandResult:
        return self.send_command("POST", "/classify", payload={"text": text})
