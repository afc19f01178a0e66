"""Durable pending-authorization store backed by SQLAlchemy."""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from oauthflow.db.session import session_scope
from oauthflow.errors import StoreUnavailableError
from oauthflow.repositories.pending_authorizations import (
    PendingAuthorizationRepository,
    PendingConsumeStatus,
)
from oauthflow.stores.base import (
    DEFAULT_TTL_SECONDS,
    Clock,
    PendingAuthorization,
    as_utc,
    utc_now,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SqlPendingAuthorizationStore:
    """Pending authorizations in the ``oauth_pending`` table.

    Every call runs in its own transaction and commits before returning, so a
    ``put`` is visible to any later ``get`` from another process. Backend
    failures raise :class:`StoreUnavailableError` instead of degrading.
    Eviction is driven externally, see :mod:`oauthflow.tasks`.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Clock = utc_now,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._session_factory = session_factory
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def put(self, state: str, verifier: str) -> PendingAuthorization:
        created_at = as_utc(self._clock())
        self._run(
            lambda repo: repo.upsert(state=state, verifier=verifier, created_at=created_at)
        )
        return PendingAuthorization(state=state, verifier=verifier, created_at=created_at)

    def get(self, state: str) -> str | None:
        now = self._clock()

        def _get(repo: PendingAuthorizationRepository) -> str | None:
            row = repo.get(state)
            if row is None:
                return None
            pending = _to_pending(row.state, row.verifier, row.created_at)
            if pending.is_expired(now=now, ttl=self._ttl):
                return None
            return pending.verifier

        return self._run(_get)

    def consume(self, state: str) -> PendingAuthorization | None:
        expires_before = as_utc(self._clock()) - self._ttl

        def _consume(repo: PendingAuthorizationRepository) -> PendingAuthorization | None:
            result = repo.consume_state(state=state, expires_before=expires_before)
            if result.status is not PendingConsumeStatus.CONSUMED or result.row is None:
                logger.debug("pending authorization %s on consume", result.status.value)
                return None
            row = result.row
            return _to_pending(row.state, row.verifier, row.created_at)

        return self._run(_consume)

    def reinstate(self, pending: PendingAuthorization) -> None:
        def _reinstate(repo: PendingAuthorizationRepository) -> None:
            if repo.get(pending.state) is None:
                repo.upsert(
                    state=pending.state,
                    verifier=pending.verifier,
                    created_at=as_utc(pending.created_at),
                )

        self._run(_reinstate)

    def list(self) -> list[PendingAuthorization]:
        return self._run(
            lambda repo: [
                _to_pending(row.state, row.verifier, row.created_at) for row in repo.list_all()
            ]
        )

    def evict_expired(self, now: datetime | None = None) -> int:
        cutoff = as_utc(now or self._clock()) - self._ttl
        removed = self._run(lambda repo: repo.delete_created_before(cutoff))
        if removed:
            logger.info("evicted %d expired pending authorizations", removed)
        return removed

    def _run(self, operation: Callable[[PendingAuthorizationRepository], T]) -> T:
        with self._scope() as session:
            return operation(PendingAuthorizationRepository(session))

    @contextmanager
    def _scope(self) -> Generator[Session]:
        try:
            with session_scope(self._session_factory) as session:
                yield session
        except SQLAlchemyError as exc:
            logger.warning("pending authorization store unavailable: %s", exc.__class__.__name__)
            raise StoreUnavailableError("pending authorization store unavailable") from exc


def _to_pending(state: str, verifier: str, created_at: datetime) -> PendingAuthorization:
    return PendingAuthorization(state=state, verifier=verifier, created_at=as_utc(created_at))
