"""Derived views that follow a store and recompute lazily."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from records import ChangeEvent, ResourceStore, Snapshot

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LiveView(Generic[T]):
    """Caches ``compute(snapshot, **params)`` until the store or the params change.

    The view subscribes to store change notifications and only marks itself
    stale; the computation runs on the next read of :attr:`value`.
    """

    def __init__(
        self,
        store: ResourceStore,
        compute: Callable[..., T],
        **params: Any,
    ) -> None:
        self._store = store
        self._compute = compute
        self._params: Dict[str, Any] = dict(params)
        self._lock = threading.Lock()
        self._stale = True
        self._value: Optional[T] = None
        self._computed_version: Optional[int] = None
        self._unsubscribe: Optional[Callable[[], None]] = store.subscribe(self._on_change)

    @property
    def params(self) -> Dict[str, Any]:
        return dict(self._params)

    @property
    def computed_version(self) -> Optional[int]:
        """Store version the cached value was computed from."""

        return self._computed_version

    def set_params(self, **params: Any) -> None:
        with self._lock:
            merged = {**self._params, **params}
            if merged != self._params:
                self._params = merged
                self._stale = True

    @property
    def value(self) -> T:
        with self._lock:
            snapshot: Snapshot = self._store.snapshot
            if self._stale or self._computed_version != snapshot.version:
                logger.debug(
                    "Recomputing %s at version %d",
                    getattr(self._compute, "__name__", "view"),
                    snapshot.version,
                )
                self._value = self._compute(snapshot, **self._params)
                self._computed_version = snapshot.version
                self._stale = False
            return self._value  # type: ignore[return-value]

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_change(self, snapshot: Snapshot, event: ChangeEvent) -> None:
        self._stale = True
