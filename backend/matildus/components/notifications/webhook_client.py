"""HTTP hand-off of domain events to the external notifier."""

from __future__ import annotations

import logging
from typing import Any, Dict

import httpx

logger = logging.getLogger(__name__)


class NotifierWebhookClient:
    def __init__(self, url: str, *, timeout: float = 10.0):
        self.url = url
        self.timeout = timeout

    def deliver(self, event: Dict[str, Any]) -> Dict[str, Any]:
        if not (self.url or "").strip():
            return {"success": False, "skipped": True, "error": "webhook_not_configured"}
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(self.url, json=event, headers={"Content-Type": "application/json"})
            response.raise_for_status()
            return {"success": True, "status_code": response.status_code}
        except httpx.HTTPStatusError as exc:
            logger.warning("Notifier rejected event %s: HTTP %s", event.get("name"), exc.response.status_code)
            return {"success": False, "error": f"http_{exc.response.status_code}"}
        except httpx.HTTPError as exc:
            logger.warning("Notifier unreachable for event %s: %s", event.get("name"), exc)
            return {"success": False, "error": str(exc)}
