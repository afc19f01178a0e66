from __future__ import annotations

from collections.abc import Generator, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from oauthflow.db import models as _models  # noqa: F401
from oauthflow.db.base import Base
from oauthflow.db.session import create_flow_engine, create_session_maker
from oauthflow.integrations.token_exchange import TokenResult
from oauthflow.providers import ProviderConfig, provider_config
from oauthflow.stores import InMemoryPendingAuthorizationStore


@dataclass(slots=True)
class FakeClock:
    now: datetime = field(default_factory=lambda: datetime(2026, 1, 1, 12, 0, tzinfo=UTC))

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@dataclass(slots=True)
class StubTokenExchanger:
    token_result: TokenResult | Exception | None = None
    user_info: Mapping[str, Any] = field(default_factory=dict)
    exchange_calls: list[dict[str, str]] = field(default_factory=list)

    def exchange(self, config: ProviderConfig, code: str, verifier: str) -> TokenResult:
        self.exchange_calls.append(
            {
                "code": code,
                "code_verifier": verifier,
                "redirect_uri": config.redirect_url,
            }
        )
        if isinstance(self.token_result, Exception):
            raise self.token_result
        if self.token_result is None:
            # Echo the verifier so callers can check which one was recovered.
            return TokenResult(access_token=verifier, token_type="bearer")
        return self.token_result

    def fetch_user_info(self, config: ProviderConfig, access_token: str) -> Mapping[str, Any]:
        return self.user_info


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def stub_exchanger() -> StubTokenExchanger:
    return StubTokenExchanger()


@pytest.fixture()
def github_config() -> ProviderConfig:
    return provider_config(
        "github",
        client_id="abc",
        client_secret="shh",
        redirect_url="https://app/cb",
    )


@pytest.fixture()
def memory_store(clock: FakeClock) -> InMemoryPendingAuthorizationStore:
    return InMemoryPendingAuthorizationStore(ttl_seconds=900, clock=clock)


@pytest.fixture()
def db_engine() -> Generator[Engine]:
    engine = create_flow_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def session_factory(db_engine: Engine) -> sessionmaker[Session]:
    return create_session_maker(db_engine)
