"""In-process pending-authorization store with a background eviction thread."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from types import TracebackType

from oauthflow.stores.base import (
    DEFAULT_EVICTION_INTERVAL_SECONDS,
    DEFAULT_TTL_SECONDS,
    Clock,
    PendingAuthorization,
    utc_now,
)

logger = logging.getLogger(__name__)


class InMemoryPendingAuthorizationStore:
    """Thread-safe ``state -> verifier`` map for single-process deployments.

    Every read, write and sweep runs under one lock, so the eviction thread
    never observes or removes a half-written entry. Expired entries are
    invisible to readers even before the sweep removes them.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        eviction_interval_seconds: float = DEFAULT_EVICTION_INTERVAL_SECONDS,
        clock: Clock = utc_now,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if eviction_interval_seconds <= 0:
            raise ValueError("eviction_interval_seconds must be positive")
        self._ttl = timedelta(seconds=ttl_seconds)
        self._eviction_interval_seconds = eviction_interval_seconds
        self._clock = clock
        self._entries: dict[str, PendingAuthorization] = {}
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def put(self, state: str, verifier: str) -> PendingAuthorization:
        pending = PendingAuthorization(state=state, verifier=verifier, created_at=self._clock())
        with self._lock:
            self._entries[state] = pending
        return pending

    def get(self, state: str) -> str | None:
        now = self._clock()
        with self._lock:
            pending = self._entries.get(state)
            if pending is None or pending.is_expired(now=now, ttl=self._ttl):
                return None
            return pending.verifier

    def consume(self, state: str) -> PendingAuthorization | None:
        now = self._clock()
        with self._lock:
            pending = self._entries.pop(state, None)
        if pending is None or pending.is_expired(now=now, ttl=self._ttl):
            return None
        return pending

    def reinstate(self, pending: PendingAuthorization) -> None:
        with self._lock:
            self._entries.setdefault(pending.state, pending)

    def list(self) -> list[PendingAuthorization]:
        with self._lock:
            return list(self._entries.values())

    def evict_expired(self, now: datetime | None = None) -> int:
        current = now or self._clock()
        with self._lock:
            expired = [
                state
                for state, pending in self._entries.items()
                if pending.is_expired(now=current, ttl=self._ttl)
            ]
            for state in expired:
                del self._entries[state]
        if expired:
            logger.debug("evicted %d expired pending authorizations", len(expired))
        return len(expired)

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_eviction_loop,
            name="oauthflow-eviction",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is not None:
            thread.join(timeout)
        self._thread = None

    def __enter__(self) -> InMemoryPendingAuthorizationStore:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.stop()

    def _run_eviction_loop(self) -> None:
        while not self._stop_event.wait(self._eviction_interval_seconds):
            try:
                self.evict_expired()
            except Exception:
                logger.exception("pending authorization eviction sweep failed")
