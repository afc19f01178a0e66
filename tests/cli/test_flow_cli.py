from __future__ import annotations

import json
from pathlib import Path
from urllib.parse import parse_qs, urlsplit

import pytest
from sqlalchemy import create_engine, inspect

from oauthflow.cli import flow as flow_cli
from oauthflow.config import FlowSettings
from oauthflow.errors import TokenExchangeError
from oauthflow.integrations.token_exchange import TokenResult
from oauthflow.stores import InMemoryPendingAuthorizationStore
from oauthflow.stores.base import PendingAuthorizationStore
from tests.conftest import FakeClock, StubTokenExchanger


@pytest.fixture()
def runtime_config(tmp_path: Path) -> Path:
    path = tmp_path / "runtime-config.yaml"
    path.write_text(
        f"""
provider:
  id: github
  client_id: abc
  client_secret: shh
  redirect_url: https://app/cb
  scopes: [read:user]
database:
  url: sqlite+pysqlite:///{tmp_path / "flow.db"}
""",
        encoding="utf-8",
    )
    return path


@pytest.fixture()
def shared_store() -> InMemoryPendingAuthorizationStore:
    return InMemoryPendingAuthorizationStore(ttl_seconds=900, clock=FakeClock())


def _factory(store: PendingAuthorizationStore) -> flow_cli.StoreFactory:
    def build(settings: FlowSettings) -> PendingAuthorizationStore:
        return store

    return build


def test_cli_providers_lists_builtin_ids(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = flow_cli.main(["providers"])

    assert exit_code == 0
    lines = capsys.readouterr().out.split()
    assert "github" in lines
    assert "microsoft" in lines
    assert lines == sorted(lines)


def test_cli_begin_then_complete_round_trip(
    runtime_config: Path,
    shared_store: InMemoryPendingAuthorizationStore,
    capsys: pytest.CaptureFixture[str],
) -> None:
    exchanger = StubTokenExchanger()

    exit_code = flow_cli.main(
        ["--config", str(runtime_config), "begin"],
        store_factory=_factory(shared_store),
        exchanger=exchanger,
    )

    assert exit_code == 0
    url_line, state_line = capsys.readouterr().out.strip().splitlines()
    query = parse_qs(urlsplit(url_line).query)
    state = state_line.removeprefix("state=")
    assert query["state"] == [state]
    assert query["scope"] == ["read:user"]
    verifier = shared_store.get(state)
    assert verifier is not None

    exit_code = flow_cli.main(
        ["--config", str(runtime_config), "complete", "--code", "c0de", "--state", state],
        store_factory=_factory(shared_store),
        exchanger=exchanger,
    )

    assert exit_code == 0
    assert capsys.readouterr().out.strip() == verifier
    assert exchanger.exchange_calls[0]["code"] == "c0de"
    assert shared_store.get(state) is None


def test_cli_begin_scope_flag_overrides_configured_scopes(
    runtime_config: Path,
    shared_store: InMemoryPendingAuthorizationStore,
    capsys: pytest.CaptureFixture[str],
) -> None:
    exit_code = flow_cli.main(
        ["--config", str(runtime_config), "begin", "--scope", "repo", "--scope", "gist"],
        store_factory=_factory(shared_store),
        exchanger=StubTokenExchanger(),
    )

    assert exit_code == 0
    url_line = capsys.readouterr().out.splitlines()[0]
    assert parse_qs(urlsplit(url_line).query)["scope"] == ["repo gist"]


def test_cli_complete_json_output(
    runtime_config: Path,
    shared_store: InMemoryPendingAuthorizationStore,
    capsys: pytest.CaptureFixture[str],
) -> None:
    shared_store.put("known-state", "known-verifier")
    exchanger = StubTokenExchanger(
        token_result=TokenResult(access_token="gho_x", token_type="bearer", scope="repo")
    )

    exit_code = flow_cli.main(
        [
            "--config",
            str(runtime_config),
            "complete",
            "--code",
            "c",
            "--state",
            "known-state",
            "--json",
        ],
        store_factory=_factory(shared_store),
        exchanger=exchanger,
    )

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload == {
        "access_token": "gho_x",
        "expires_at": None,
        "scope": "repo",
        "token_type": "bearer",
    }


def test_cli_complete_unknown_state_exits_with_error(
    runtime_config: Path,
    shared_store: InMemoryPendingAuthorizationStore,
    capsys: pytest.CaptureFixture[str],
) -> None:
    exit_code = flow_cli.main(
        ["--config", str(runtime_config), "complete", "--code", "c", "--state", "nope"],
        store_factory=_factory(shared_store),
        exchanger=StubTokenExchanger(),
    )

    assert exit_code == 2
    assert "error: expired_or_unknown_state" in capsys.readouterr().err


def test_cli_complete_failed_exchange_keeps_pending_entry(
    runtime_config: Path,
    shared_store: InMemoryPendingAuthorizationStore,
    capsys: pytest.CaptureFixture[str],
) -> None:
    shared_store.put("known-state", "known-verifier")

    exit_code = flow_cli.main(
        ["--config", str(runtime_config), "complete", "--code", "c", "--state", "known-state"],
        store_factory=_factory(shared_store),
        exchanger=StubTokenExchanger(
            token_result=TokenExchangeError("bad_verification_code", status_code=400)
        ),
    )

    assert exit_code == 2
    assert "error: token_exchange_failed" in capsys.readouterr().err
    assert shared_store.get("known-state") == "known-verifier"


def test_cli_evict_reports_removed_count(
    runtime_config: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    clock = FakeClock()
    store = InMemoryPendingAuthorizationStore(ttl_seconds=900, clock=clock)
    store.put("old", "v")
    clock.advance(900)

    exit_code = flow_cli.main(
        ["--config", str(runtime_config), "evict"],
        store_factory=_factory(store),
    )

    assert exit_code == 0
    assert capsys.readouterr().out.strip() == "evicted 1 expired pending authorizations"


def test_cli_init_db_creates_pending_table(
    runtime_config: Path,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    exit_code = flow_cli.main(["--config", str(runtime_config), "init-db"])

    assert exit_code == 0
    assert "oauth_pending table ready" in capsys.readouterr().out
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'flow.db'}")
    try:
        assert "oauth_pending" in inspect(engine).get_table_names()
    finally:
        engine.dispose()


def test_cli_default_sql_store_round_trip(
    runtime_config: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    exchanger = StubTokenExchanger()
    config_args = ["--config", str(runtime_config)]

    assert flow_cli.main([*config_args, "init-db"]) == 0
    capsys.readouterr()

    assert flow_cli.main([*config_args, "begin"], exchanger=exchanger) == 0
    state = capsys.readouterr().out.strip().splitlines()[1].removeprefix("state=")

    exit_code = flow_cli.main(
        [*config_args, "complete", "--code", "c0de", "--state", state],
        exchanger=exchanger,
    )
    assert exit_code == 0
    verifier = capsys.readouterr().out.strip()
    assert exchanger.exchange_calls == [
        {"code": "c0de", "code_verifier": verifier, "redirect_uri": "https://app/cb"}
    ]

    replay_exit_code = flow_cli.main(
        [*config_args, "complete", "--code", "c0de", "--state", state],
        exchanger=exchanger,
    )
    assert replay_exit_code == 2
    assert "error: expired_or_unknown_state" in capsys.readouterr().err

    assert flow_cli.main([*config_args, "evict"]) == 0
    assert capsys.readouterr().out.strip() == "evicted 0 expired pending authorizations"
