"""Change feed that records store events and forwards them to webhook URLs."""
from __future__ import annotations

import logging
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional
from urllib.parse import urlparse

import requests

from records import ChangeEvent, ResourceStore, Snapshot

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 10
DEFAULT_TIMEOUT_SECONDS = 10


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ChangeFeed:
    """Keeps the most recent store events and posts each one to every subscriber."""

    def __init__(
        self,
        store: ResourceStore,
        *,
        history_size: int = DEFAULT_HISTORY_SIZE,
        timeout: int = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
        deliver_inline: bool = False,
    ) -> None:
        self._events: Deque[Dict[str, Any]] = deque(maxlen=max(1, history_size))
        self._subscriptions: List[str] = []
        self._timeout = timeout
        self._session = session or requests.Session()
        self._executor: Optional[ThreadPoolExecutor] = (
            None if deliver_inline else ThreadPoolExecutor(max_workers=1, thread_name_prefix="webhooks")
        )
        self._unsubscribe = store.subscribe(self._on_change)

    @property
    def subscriptions(self) -> List[str]:
        return list(self._subscriptions)

    def recent(self) -> List[Dict[str, Any]]:
        """Newest event first."""

        return list(reversed(self._events))

    def add_subscription(self, url: str) -> bool:
        url = (url or "").strip()
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Webhook URL must be an absolute http(s) URL, got {url!r}")
        if url in self._subscriptions:
            return False
        self._subscriptions.append(url)
        logger.info("Webhook subscription added: %s", url)
        return True

    def remove_subscription(self, url: str) -> bool:
        if url not in self._subscriptions:
            return False
        self._subscriptions.remove(url)
        return True

    def close(self) -> None:
        self._unsubscribe()
        if self._executor is not None:
            self._executor.shutdown(wait=True)

    def _on_change(self, snapshot: Snapshot, event: ChangeEvent) -> None:
        payload = asdict(event)
        payload["cascaded"] = list(event.cascaded)
        payload["timestamp"] = _utc_now().isoformat().replace("+00:00", "Z")
        self._events.append(payload)
        for url in list(self._subscriptions):
            if self._executor is None:
                self._deliver(url, payload)
            else:
                self._executor.submit(self._deliver, url, payload)

    def _deliver(self, url: str, payload: Dict[str, Any]) -> None:
        try:
            response = self._session.post(url, json=payload, timeout=self._timeout)
        except requests.RequestException as exc:
            logger.error("Webhook delivery to %s failed: %s", url, exc)
            return
        if not response.ok:
            logger.error(
                "Webhook %s rejected %s event: status=%s",
                url,
                payload.get("event_type"),
                response.status_code,
            )
