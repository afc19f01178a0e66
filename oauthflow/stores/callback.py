"""Adapter for caller-managed persistence."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from oauthflow.stores.base import Clock, PendingAuthorization, utc_now

type SaveCallback = Callable[[PendingAuthorization], None]
type LoadCallback = Callable[[str], PendingAuthorization | None]
type DeleteCallback = Callable[[str], None]


class CallbackPendingAuthorizationStore:
    """Expose ``save``/``load`` callables through the store protocol.

    ``load`` hands back the record ``save`` received, so a consumed entry
    keeps its ``created_at`` when it is reinstated. The caller owns expiry and
    cleanup, so ``evict_expired`` is a no-op and ``list`` reports nothing.
    Without a ``delete`` callable, ``consume`` only reads and the entry stays
    wherever the caller put it.
    """

    def __init__(
        self,
        *,
        save: SaveCallback,
        load: LoadCallback,
        delete: DeleteCallback | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._save = save
        self._load = load
        self._delete = delete
        self._clock = clock

    def put(self, state: str, verifier: str) -> PendingAuthorization:
        pending = PendingAuthorization(state=state, verifier=verifier, created_at=self._clock())
        self._save(pending)
        return pending

    def get(self, state: str) -> str | None:
        pending = self._load(state)
        return pending.verifier if pending is not None else None

    def consume(self, state: str) -> PendingAuthorization | None:
        pending = self._load(state)
        if pending is None:
            return None
        if self._delete is not None:
            self._delete(state)
        return pending

    def reinstate(self, pending: PendingAuthorization) -> None:
        if self._delete is not None:
            self._save(pending)

    def list(self) -> list[PendingAuthorization]:
        return []

    def evict_expired(self, now: datetime | None = None) -> int:
        return 0
