"""Runtime configuration loading."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

import yaml

from oauthflow.db.session import DEFAULT_DATABASE_URL
from oauthflow.providers.base import CUSTOM_PROVIDER_ID, ProviderConfig
from oauthflow.providers.registry import custom_provider, provider_config
from oauthflow.stores.base import DEFAULT_EVICTION_INTERVAL_SECONDS, DEFAULT_TTL_SECONDS

DEFAULT_RUNTIME_CONFIG_PATH = "runtime-config.yaml"
_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True, slots=True)
class FlowSettings:
    provider_id: str
    client_id: str
    client_secret: str
    redirect_url: str
    scopes: tuple[str, ...] = ()
    tenant_id: str | None = None
    authorization_endpoint: str = ""
    token_endpoint: str = ""
    userinfo_endpoint: str | None = None
    http_timeout_seconds: float = 10.0
    store_ttl_seconds: int = DEFAULT_TTL_SECONDS
    eviction_interval_seconds: int = DEFAULT_EVICTION_INTERVAL_SECONDS
    consume_on_read: bool = True
    database_url: str = DEFAULT_DATABASE_URL
    celery_broker_url: str = "redis://localhost:6379/0"
    runtime_config_path: str = DEFAULT_RUNTIME_CONFIG_PATH

    @property
    def scope_param(self) -> str:
        return " ".join(self.scopes)

    def provider_config(self) -> ProviderConfig:
        if self.provider_id == CUSTOM_PROVIDER_ID:
            return custom_provider(
                authorization_endpoint=self.authorization_endpoint,
                token_endpoint=self.token_endpoint,
                userinfo_endpoint=self.userinfo_endpoint,
                client_id=self.client_id,
                client_secret=self.client_secret,
                redirect_url=self.redirect_url,
            )
        return provider_config(
            self.provider_id,
            client_id=self.client_id,
            client_secret=self.client_secret,
            redirect_url=self.redirect_url,
            tenant_id=self.tenant_id,
        )

    @classmethod
    def from_yaml(cls, runtime_config_path: str = DEFAULT_RUNTIME_CONFIG_PATH) -> FlowSettings:
        normalized_path = runtime_config_path.strip() or DEFAULT_RUNTIME_CONFIG_PATH
        config = _load_runtime_config(normalized_path)

        provider_cfg = cast(dict[str, Any], config.get("provider", {}))
        store_cfg = cast(dict[str, Any], config.get("store", {}))
        database_cfg = cast(dict[str, Any], config.get("database", {}))
        celery_cfg = cast(dict[str, Any], config.get("celery", {}))

        tenant_id = provider_cfg.get("tenant_id")
        userinfo_endpoint = provider_cfg.get("userinfo_endpoint")

        return cls(
            provider_id=str(provider_cfg.get("id", CUSTOM_PROVIDER_ID)).strip().lower(),
            client_id=str(provider_cfg.get("client_id", "")),
            client_secret=os.environ.get(
                "OAUTHFLOW_CLIENT_SECRET", str(provider_cfg.get("client_secret", ""))
            ),
            redirect_url=str(provider_cfg.get("redirect_url", "")),
            scopes=_normalize_scopes(
                tuple(cast(list[str], provider_cfg.get("scopes", [])))
            ),
            tenant_id=str(tenant_id) if tenant_id is not None else None,
            authorization_endpoint=str(provider_cfg.get("authorization_endpoint", "")),
            token_endpoint=str(provider_cfg.get("token_endpoint", "")),
            userinfo_endpoint=str(userinfo_endpoint) if userinfo_endpoint else None,
            http_timeout_seconds=max(
                1.0,
                float(provider_cfg.get("http_timeout_seconds", 10.0)),
            ),
            store_ttl_seconds=max(
                1,
                int(store_cfg.get("ttl_seconds", DEFAULT_TTL_SECONDS)),
            ),
            eviction_interval_seconds=max(
                1,
                int(
                    store_cfg.get(
                        "eviction_interval_seconds", DEFAULT_EVICTION_INTERVAL_SECONDS
                    )
                ),
            ),
            consume_on_read=_coerce_bool(
                store_cfg.get("consume_on_read", True), key="store.consume_on_read"
            ),
            database_url=os.environ.get(
                "DATABASE_URL", str(database_cfg.get("url", DEFAULT_DATABASE_URL))
            ),
            celery_broker_url=str(
                celery_cfg.get("broker_url", "redis://localhost:6379/0")
            ),
            runtime_config_path=normalized_path,
        )


def _load_runtime_config(runtime_config_path: str) -> dict[str, Any]:
    path = Path(runtime_config_path)
    if not path.exists() or not path.is_file():
        return {}

    parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    if isinstance(parsed, dict):
        return parsed
    return {}


def _coerce_bool(value: Any, *, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in _TRUE_STRINGS:
            return True
        if normalized in _FALSE_STRINGS:
            return False
    raise ValueError(f"{key} must be a boolean (received {value!r})")


def _normalize_scopes(scopes: tuple[str, ...]) -> tuple[str, ...]:
    normalized: list[str] = []
    seen: set[str] = set()
    for scope in scopes:
        normalized_scope = str(scope).strip()
        if not normalized_scope or normalized_scope in seen:
            continue
        seen.add(normalized_scope)
        normalized.append(normalized_scope)
    return tuple(normalized)


@lru_cache(maxsize=1)
def get_settings() -> FlowSettings:
    return FlowSettings.from_yaml(
        os.environ.get("OAUTHFLOW_RUNTIME_CONFIG", DEFAULT_RUNTIME_CONFIG_PATH)
    )
