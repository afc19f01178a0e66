"""Authorization-code token exchange against a provider token endpoint."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Protocol
from urllib.parse import parse_qsl

import httpx

from oauthflow.errors import (
    OAuthFlowError,
    TokenExchangeError,
    TransportError,
    UnsupportedProviderError,
)
from oauthflow.providers.base import ProviderConfig
from oauthflow.stores.base import Clock, utc_now

logger = logging.getLogger(__name__)

HTTPClientFactory = Callable[..., httpx.Client]

_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass(frozen=True, slots=True)
class TokenResult:
    access_token: str
    token_type: str | None = None
    expires_in: int | None = None
    expires_at: datetime | None = None
    refresh_token: str | None = None
    scope: str | None = None
    id_token: str | None = None

    def __repr__(self) -> str:
        return (
            f"TokenResult(access_token='***', token_type={self.token_type!r}, "
            f"expires_at={self.expires_at!r}, scope={self.scope!r})"
        )


class TokenExchangerProtocol(Protocol):
    def exchange(self, config: ProviderConfig, code: str, verifier: str) -> TokenResult: ...

    def fetch_user_info(self, config: ProviderConfig, access_token: str) -> Mapping[str, Any]: ...


class TokenExchanger(TokenExchangerProtocol):
    def __init__(
        self,
        *,
        timeout_seconds: float = 10.0,
        http_client_factory: HTTPClientFactory = httpx.Client,
        clock: Clock = utc_now,
    ) -> None:
        self._timeout_seconds = timeout_seconds
        self._http_client_factory = http_client_factory
        self._clock = clock

    def exchange(self, config: ProviderConfig, code: str, verifier: str) -> TokenResult:
        payload = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": config.redirect_url,
            "client_id": config.client_id,
            "client_secret": config.client_secret,
            "code_verifier": verifier,
        }

        try:
            with self._http_client_factory(timeout=self._timeout_seconds) as client:
                response = client.post(
                    config.token_endpoint,
                    data=payload,
                    headers={"Accept": "application/json"},
                )
        except httpx.RequestError as exc:
            logger.warning(
                "token exchange transport failure provider=%s error=%s",
                config.provider_id,
                exc.__class__.__name__,
            )
            raise TransportError(f"token exchange request failed: {exc}") from exc

        if not response.is_success:
            error = _provider_error_code(response)
            logger.warning(
                "token exchange rejected provider=%s status=%s error=%s",
                config.provider_id,
                response.status_code,
                error,
            )
            raise TokenExchangeError(
                f"token exchange failed with status={response.status_code}",
                status_code=response.status_code,
                error=error,
            )

        data = _token_payload(response)
        if "error" in data and "access_token" not in data:
            # GitHub reports rejected codes with a 200 response.
            error = _optional_str(data.get("error"))
            raise TokenExchangeError(
                f"token exchange failed with error={error}",
                status_code=response.status_code,
                error=error,
            )
        return self._parse_token_result(data)

    def fetch_user_info(self, config: ProviderConfig, access_token: str) -> Mapping[str, Any]:
        if config.userinfo_endpoint is None:
            raise UnsupportedProviderError(
                f"provider {config.provider_id!r} has no userinfo endpoint"
            )

        headers = {"Authorization": f"Bearer {access_token}", "Accept": "application/json"}
        try:
            with self._http_client_factory(timeout=self._timeout_seconds) as client:
                response = client.get(config.userinfo_endpoint, headers=headers)
        except httpx.RequestError as exc:
            raise TransportError(f"userinfo request failed: {exc}") from exc

        if not response.is_success:
            raise OAuthFlowError(f"userinfo request failed with status={response.status_code}")

        return _json_object(response, error_cls=OAuthFlowError)

    def _parse_token_result(self, data: Mapping[str, Any]) -> TokenResult:
        access_token = data.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise TokenExchangeError("token exchange response missing access_token")

        expires_in = _coerce_optional_int(data.get("expires_in"))
        expires_at = None
        if expires_in is not None:
            expires_at = self._clock() + timedelta(seconds=expires_in)

        return TokenResult(
            access_token=access_token,
            token_type=_optional_str(data.get("token_type")),
            expires_in=expires_in,
            expires_at=expires_at,
            refresh_token=_optional_str(data.get("refresh_token")),
            scope=_optional_str(data.get("scope")),
            id_token=_optional_str(data.get("id_token")),
        )


def _token_payload(response: httpx.Response) -> Mapping[str, Any]:
    content_type = response.headers.get("content-type", "")
    if content_type.split(";", 1)[0].strip().lower() == _FORM_CONTENT_TYPE:
        return dict(parse_qsl(response.text, keep_blank_values=True))
    return _json_object(response, error_cls=TokenExchangeError)


def _provider_error_code(response: httpx.Response) -> str | None:
    try:
        data = _token_payload(response)
    except OAuthFlowError:
        return None
    return _optional_str(data.get("error"))


def _json_object(
    response: httpx.Response,
    *,
    error_cls: type[OAuthFlowError],
) -> Mapping[str, Any]:
    try:
        data = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise error_cls("upstream response is not valid JSON") from exc

    if not isinstance(data, Mapping):
        raise error_cls("upstream response root must be a JSON object")
    return data


def _coerce_optional_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return None
