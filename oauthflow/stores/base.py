"""Pending-authorization store interface and shared record type."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

type Clock = Callable[[], datetime]

DEFAULT_TTL_SECONDS = 900
DEFAULT_EVICTION_INTERVAL_SECONDS = 10


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class PendingAuthorization:
    state: str
    verifier: str
    created_at: datetime

    def is_expired(self, *, now: datetime, ttl: timedelta) -> bool:
        return as_utc(now) - as_utc(self.created_at) >= ttl

    def __repr__(self) -> str:
        return (
            f"PendingAuthorization(state={self.state!r}, verifier='***', "
            f"created_at={self.created_at.isoformat()!r})"
        )


class PendingAuthorizationStore(Protocol):
    def put(self, state: str, verifier: str) -> PendingAuthorization:
        """Store or overwrite the verifier for ``state`` stamped with the current time."""

    def get(self, state: str) -> str | None:
        """Return the verifier for an unexpired ``state`` without removing it."""

    def consume(self, state: str) -> PendingAuthorization | None:
        """Remove and return an unexpired entry in one step."""

    def reinstate(self, pending: PendingAuthorization) -> None:
        """Put a previously consumed entry back with its original timestamp."""

    def list(self) -> list[PendingAuthorization]:
        """Return a snapshot of stored entries for diagnostics."""

    def evict_expired(self, now: datetime | None = None) -> int:
        """Delete entries older than the TTL and return how many were removed."""


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
