"""Two-phase Authorization Code + PKCE flow coordinator.

``begin`` turns a provider config and scopes into an authorization URL and
records the ``state -> verifier`` pair; ``complete`` recovers the verifier for
the state the provider sent back and exchanges the code for a token.

The coordinator keeps no per-flow state of its own. The injected store is the
only shared mutable resource, and the provider config is an immutable value
passed into each call.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote, urlencode

from oauthflow.auth.pkce import PkceGenerator
from oauthflow.enums import FlowStatus, can_transition_status
from oauthflow.errors import ExpiredOrUnknownStateError, MissingAuthorizationCodeError
from oauthflow.integrations.token_exchange import (
    TokenExchanger,
    TokenExchangerProtocol,
    TokenResult,
)
from oauthflow.providers.base import ProviderConfig
from oauthflow.stores.base import Clock, PendingAuthorization, PendingAuthorizationStore, utc_now

logger = logging.getLogger(__name__)

type SaveCallback = Callable[[PendingAuthorization], None]
type StatusListener = Callable[[str, FlowStatus], None]


@dataclass(frozen=True, slots=True)
class AuthorizationUrlResult:
    authorization_url: str
    state: str


class AuthorizationCoordinator:
    def __init__(
        self,
        store: PendingAuthorizationStore,
        *,
        exchanger: TokenExchangerProtocol | None = None,
        pkce: PkceGenerator | None = None,
        consume_on_read: bool = True,
        clock: Clock = utc_now,
        on_status_change: StatusListener | None = None,
    ) -> None:
        self._store = store
        self._exchanger = exchanger or TokenExchanger()
        self._pkce = pkce or PkceGenerator()
        self._consume_on_read = consume_on_read
        self._clock = clock
        self._on_status_change = on_status_change

    @property
    def store(self) -> PendingAuthorizationStore:
        return self._store

    def begin(
        self,
        config: ProviderConfig,
        scopes: Iterable[str] = (),
        *,
        save: SaveCallback | None = None,
    ) -> AuthorizationUrlResult:
        """Build the authorization URL and persist the pending pair.

        With ``save`` the pair is handed to the caller's storage instead of
        the injected store. Persistence is the last side effect, so a failure
        there leaves nothing behind and propagates to the caller.
        """
        triple = self._pkce.generate()
        self._notify(triple.csrf_state, FlowStatus.CREATED)

        authorization_url = build_authorization_url(
            config,
            state=triple.csrf_state,
            code_challenge=triple.challenge,
            scopes=scopes,
        )

        try:
            if save is not None:
                save(
                    PendingAuthorization(
                        state=triple.csrf_state,
                        verifier=triple.verifier,
                        created_at=self._clock(),
                    )
                )
            else:
                self._store.put(triple.csrf_state, triple.verifier)
        except Exception:
            self._transition(triple.csrf_state, FlowStatus.CREATED, FlowStatus.FAILED)
            raise

        self._transition(triple.csrf_state, FlowStatus.CREATED, FlowStatus.URL_GENERATED)
        logger.info(
            "authorization flow started provider=%s state=%s",
            config.provider_id,
            _state_prefix(triple.csrf_state),
        )
        return AuthorizationUrlResult(authorization_url=authorization_url, state=triple.csrf_state)

    def complete(self, config: ProviderConfig, *, code: str, state: str) -> TokenResult:
        """Exchange ``code`` using the verifier recorded for ``state``.

        Raises :class:`ExpiredOrUnknownStateError` when the state was never
        issued, has expired or was already used. When the exchange fails, a
        consumed entry is put back unchanged so the store ends up as it was.
        """
        if not state or not state.strip():
            raise ExpiredOrUnknownStateError("callback is missing the state parameter")
        if not code or not code.strip():
            raise MissingAuthorizationCodeError("callback is missing the code parameter")

        consumed: PendingAuthorization | None = None
        if self._consume_on_read:
            consumed = self._store.consume(state)
            verifier = consumed.verifier if consumed is not None else None
        else:
            verifier = self._store.get(state)

        if verifier is None:
            logger.info("authorization state unknown or expired state=%s", _state_prefix(state))
            raise ExpiredOrUnknownStateError("authorization state is unknown, expired or used")

        try:
            token = self._exchanger.exchange(config, code, verifier)
        except Exception as exc:
            logger.warning(
                "token exchange failed provider=%s state=%s error=%s",
                config.provider_id,
                _state_prefix(state),
                getattr(exc, "error_code", type(exc).__name__),
            )
            if consumed is not None:
                self._reinstate(consumed)
            self._transition(state, FlowStatus.URL_GENERATED, FlowStatus.FAILED)
            raise

        self._transition(state, FlowStatus.URL_GENERATED, FlowStatus.COMPLETED)
        logger.info(
            "authorization flow completed provider=%s state=%s",
            config.provider_id,
            _state_prefix(state),
        )
        return token

    def exchange(self, config: ProviderConfig, *, code: str, verifier: str) -> TokenResult:
        if not code or not code.strip():
            raise MissingAuthorizationCodeError("callback is missing the code parameter")
        return self._exchanger.exchange(config, code, verifier)

    def fetch_user_info(self, config: ProviderConfig, *, access_token: str) -> Mapping[str, Any]:
        return self._exchanger.fetch_user_info(config, access_token)

    def _reinstate(self, pending: PendingAuthorization) -> None:
        # The exchange failure is what the caller needs to see.
        try:
            self._store.reinstate(pending)
        except Exception:
            logger.exception(
                "could not reinstate pending authorization state=%s",
                _state_prefix(pending.state),
            )

    def _transition(self, state: str, current: FlowStatus, new: FlowStatus) -> None:
        if not can_transition_status(current, new):
            raise RuntimeError(f"cannot transition flow from {current.value} to {new.value}")
        self._notify(state, new)

    def _notify(self, state: str, status: FlowStatus) -> None:
        logger.debug("flow state=%s status=%s", _state_prefix(state), status.value)
        if self._on_status_change is not None:
            self._on_status_change(state, status)


def build_authorization_url(
    config: ProviderConfig,
    *,
    state: str,
    code_challenge: str,
    scopes: Iterable[str] = (),
) -> str:
    params = {
        "response_type": "code",
        "client_id": config.client_id,
        "state": state,
        "code_challenge": code_challenge,
        "code_challenge_method": "S256",
        "redirect_uri": config.redirect_url,
    }
    scope_param = scope_string(scopes)
    if scope_param:
        params["scope"] = scope_param

    separator = "&" if "?" in config.authorization_endpoint else "?"
    return f"{config.authorization_endpoint}{separator}{urlencode(params, quote_via=quote)}"


def scope_string(scopes: Iterable[str]) -> str:
    if isinstance(scopes, str):
        scopes = scopes.split()
    normalized: list[str] = []
    seen: set[str] = set()
    for scope in scopes:
        normalized_scope = scope.strip()
        if not normalized_scope or normalized_scope in seen:
            continue
        seen.add(normalized_scope)
        normalized.append(normalized_scope)
    return " ".join(normalized)


def _state_prefix(state: str) -> str:
    return f"{state[:6]}..."
