"""Repository for pending authorization rows."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from oauthflow.db.models import OauthPending
from oauthflow.stores.base import as_utc


class PendingConsumeStatus(StrEnum):
    CONSUMED = "consumed"
    MISSING = "missing"
    EXPIRED = "expired"


@dataclass(frozen=True, slots=True)
class PendingConsumeResult:
    status: PendingConsumeStatus
    row: OauthPending | None = None


class PendingAuthorizationRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def upsert(self, *, state: str, verifier: str, created_at: datetime) -> OauthPending:
        row = self._session.get(OauthPending, state)
        if row is None:
            row = OauthPending(state=state, verifier=verifier, created_at=created_at)
            self._session.add(row)
        else:
            row.verifier = verifier
            row.created_at = created_at
        self._session.flush()
        return row

    def get(self, state: str) -> OauthPending | None:
        statement = select(OauthPending).where(OauthPending.state == state)
        return self._session.execute(statement).scalar_one_or_none()

    def consume_state(self, *, state: str, expires_before: datetime) -> PendingConsumeResult:
        row = self.get(state)
        if row is None:
            return PendingConsumeResult(status=PendingConsumeStatus.MISSING)

        self._session.delete(row)
        self._session.flush()

        if as_utc(row.created_at) <= as_utc(expires_before):
            return PendingConsumeResult(status=PendingConsumeStatus.EXPIRED)

        return PendingConsumeResult(status=PendingConsumeStatus.CONSUMED, row=row)

    def list_all(self) -> list[OauthPending]:
        statement = select(OauthPending).order_by(OauthPending.created_at)
        return list(self._session.execute(statement).scalars().all())

    def delete_created_before(self, cutoff: datetime) -> int:
        statement = delete(OauthPending).where(OauthPending.created_at <= cutoff)
        result = self._session.execute(statement)
        return int(result.rowcount or 0)
