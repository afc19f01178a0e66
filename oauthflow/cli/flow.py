"""Operator CLI for running an authorization flow against the durable store."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Callable, Generator, Sequence
from contextlib import contextmanager

from oauthflow.config import DEFAULT_RUNTIME_CONFIG_PATH, FlowSettings
from oauthflow.coordinator import AuthorizationCoordinator
from oauthflow.db.base import Base
from oauthflow.db.session import create_flow_engine, create_session_maker
from oauthflow.errors import OAuthFlowError
from oauthflow.integrations.token_exchange import TokenExchanger, TokenExchangerProtocol
from oauthflow.providers.registry import supported_providers
from oauthflow.stores.base import PendingAuthorizationStore
from oauthflow.stores.sql import SqlPendingAuthorizationStore

type StoreFactory = Callable[[FlowSettings], PendingAuthorizationStore]


def main(
    argv: Sequence[str] | None = None,
    *,
    store_factory: StoreFactory | None = None,
    exchanger: TokenExchangerProtocol | None = None,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s %(message)s")

    if args.command == "providers":
        for provider_id in supported_providers():
            print(provider_id)
        return 0

    settings = FlowSettings.from_yaml(args.config)
    if args.command == "init-db":
        return _run_init_db(settings)

    try:
        with _open_store(settings, store_factory) as store:
            if args.command == "evict":
                print(f"evicted {store.evict_expired()} expired pending authorizations")
                return 0

            coordinator = AuthorizationCoordinator(
                store,
                exchanger=exchanger
                or TokenExchanger(timeout_seconds=settings.http_timeout_seconds),
                consume_on_read=settings.consume_on_read,
            )
            if args.command == "begin":
                return _run_begin(args, settings=settings, coordinator=coordinator)
            if args.command == "complete":
                return _run_complete(args, settings=settings, coordinator=coordinator)
    except OAuthFlowError as exc:
        print(f"error: {exc.error_code}: {exc}", file=sys.stderr)
        return 2

    parser.error(f"unsupported command: {args.command}")
    return 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python -m oauthflow.cli.flow")
    parser.add_argument("--config", default=DEFAULT_RUNTIME_CONFIG_PATH)
    parser.add_argument("--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("providers", help="list built-in provider ids")
    subparsers.add_parser("init-db", help="create the oauth_pending table if missing")
    subparsers.add_parser("evict", help="delete expired pending authorizations")

    begin_parser = subparsers.add_parser("begin", help="print an authorization URL")
    begin_parser.add_argument(
        "--scope",
        action="append",
        default=[],
        help="requested scope; repeat for several (defaults to configured scopes)",
    )

    complete_parser = subparsers.add_parser("complete", help="exchange a callback code")
    complete_parser.add_argument("--code", required=True)
    complete_parser.add_argument("--state", required=True)
    complete_parser.add_argument("--json", action="store_true")
    return parser


def _run_begin(
    args: argparse.Namespace,
    *,
    settings: FlowSettings,
    coordinator: AuthorizationCoordinator,
) -> int:
    scopes = tuple(args.scope) or settings.scopes
    result = coordinator.begin(settings.provider_config(), scopes)
    print(result.authorization_url)
    print(f"state={result.state}")
    return 0


def _run_complete(
    args: argparse.Namespace,
    *,
    settings: FlowSettings,
    coordinator: AuthorizationCoordinator,
) -> int:
    token = coordinator.complete(settings.provider_config(), code=args.code, state=args.state)
    if args.json:
        print(
            json.dumps(
                {
                    "access_token": token.access_token,
                    "token_type": token.token_type,
                    "expires_at": token.expires_at.isoformat() if token.expires_at else None,
                    "scope": token.scope,
                },
                sort_keys=True,
            )
        )
    else:
        print(token.access_token)
    return 0


def _run_init_db(settings: FlowSettings) -> int:
    engine = create_flow_engine(settings.database_url)
    try:
        Base.metadata.create_all(engine)
    finally:
        engine.dispose()
    print("oauth_pending table ready")
    return 0


@contextmanager
def _open_store(
    settings: FlowSettings,
    store_factory: StoreFactory | None,
) -> Generator[PendingAuthorizationStore]:
    if store_factory is not None:
        yield store_factory(settings)
        return

    engine = create_flow_engine(settings.database_url)
    try:
        yield SqlPendingAuthorizationStore(
            create_session_maker(engine),
            ttl_seconds=settings.store_ttl_seconds,
        )
    finally:
        engine.dispose()


if __name__ == "__main__":
    raise SystemExit(main())
