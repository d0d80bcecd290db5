"""Realtime broadcast of entity changes.

The mobile client subscribes per entity (``orders:<id>``,
``errands:<id>``) and re-fetches when it sees an ``UPDATE`` broadcast.
``RealtimeBroadcaster`` posts outbox messages to the hosted realtime
endpoint; with no endpoint configured it only logs, which is what local
development and the test suite use.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
import structlog
from django.conf import settings

logger = structlog.get_logger(__name__)


class BroadcastError(Exception):
    """The realtime endpoint refused or could not be reached."""


class RealtimeBroadcaster:
    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        conf = settings.REALTIME
        self._url = conf["BROADCAST_URL"] if url is None else url
        self._api_key = conf["API_KEY"] if api_key is None else api_key
        self._timeout = conf["TIMEOUT"] if timeout is None else timeout
        self._client = client

    @property
    def enabled(self) -> bool:
        return bool(self._url)

    def broadcast(self, message: Dict[str, Any]) -> None:
        log = logger.bind(channel=message.get("channel"), event=message.get("event"))
        if not self.enabled:
            log.info("realtime.broadcast_skipped", reason="no_endpoint")
            return

        body = {
            "messages": [
                {
                    "topic": message["channel"],
                    "event": "UPDATE",
                    "payload": {"type": message["event"], **message["payload"]},
                }
            ]
        }
        headers = {"apikey": self._api_key} if self._api_key else {}
        try:
            if self._client is not None:
                response = self._client.post(self._url, json=body, headers=headers)
            else:
                response = httpx.post(
                    self._url, json=body, headers=headers, timeout=self._timeout
                )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            log.warning("realtime.broadcast_failed", error=str(exc))
            raise BroadcastError(str(exc)) from exc

        log.info("realtime.broadcast_sent")
