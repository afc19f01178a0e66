"""Well-known provider endpoints and config construction."""

from __future__ import annotations

import re
from types import MappingProxyType

from oauthflow.errors import InvalidTenantError, UnsupportedProviderError
from oauthflow.providers.base import CUSTOM_PROVIDER_ID, ProviderConfig, ProviderEndpoints

MICROSOFT_PROVIDER_ID = "microsoft"
_MICROSOFT_BASE_URL = "https://login.microsoftonline.com/{tenant}/oauth2/v2.0"
_TENANT_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")

_PROVIDER_ALIASES = MappingProxyType({"x": "twitter"})

_STATIC_ENDPOINTS: MappingProxyType[str, ProviderEndpoints] = MappingProxyType(
    {
        "discord": ProviderEndpoints(
            authorization_endpoint="https://discord.com/oauth2/authorize",
            token_endpoint="https://discord.com/api/oauth2/token",
        ),
        "facebook": ProviderEndpoints(
            authorization_endpoint="https://www.facebook.com/v19.0/dialog/oauth",
            token_endpoint="https://graph.facebook.com/v19.0/oauth/access_token",
        ),
        "github": ProviderEndpoints(
            authorization_endpoint="https://github.com/login/oauth/authorize",
            token_endpoint="https://github.com/login/oauth/access_token",
        ),
        "google": ProviderEndpoints(
            authorization_endpoint="https://accounts.google.com/o/oauth2/v2/auth",
            token_endpoint="https://oauth2.googleapis.com/token",
            userinfo_endpoint="https://openidconnect.googleapis.com/v1/userinfo",
        ),
        "paypal": ProviderEndpoints(
            authorization_endpoint="https://sandbox.paypal.com/signin/authorize",
            token_endpoint="https://api-m.sandbox.paypal.com/v1/oauth2/token",
            userinfo_endpoint=(
                "https://api-m.sandbox.paypal.com/v1/identity/openidconnect/userinfo"
                "?schema=openid"
            ),
        ),
        "spotify": ProviderEndpoints(
            authorization_endpoint="https://accounts.spotify.com/authorize",
            token_endpoint="https://accounts.spotify.com/api/token",
        ),
        "twitter": ProviderEndpoints(
            authorization_endpoint="https://twitter.com/i/oauth2/authorize",
            token_endpoint="https://api.twitter.com/2/oauth2/token",
        ),
    }
)


def supported_providers() -> tuple[str, ...]:
    return tuple(sorted({*_STATIC_ENDPOINTS, MICROSOFT_PROVIDER_ID}))


def resolve(provider_id: str, *, tenant_id: str | None = None) -> ProviderEndpoints:
    normalized_id = _normalize_provider_id(provider_id)

    if normalized_id == MICROSOFT_PROVIDER_ID:
        return microsoft_endpoints(tenant_id)

    endpoints = _STATIC_ENDPOINTS.get(normalized_id)
    if endpoints is None:
        raise UnsupportedProviderError(
            f"unsupported provider {provider_id!r}; expected one of "
            f"{', '.join(supported_providers())} or use a custom provider"
        )
    if tenant_id is not None:
        raise InvalidTenantError(f"provider {normalized_id!r} does not take a tenant_id")
    return endpoints


def microsoft_endpoints(tenant_id: str | None) -> ProviderEndpoints:
    tenant = _validate_tenant(tenant_id)
    base_url = _MICROSOFT_BASE_URL.format(tenant=tenant)
    return ProviderEndpoints(
        authorization_endpoint=f"{base_url}/authorize",
        token_endpoint=f"{base_url}/token",
        userinfo_endpoint="https://graph.microsoft.com/oidc/userinfo",
    )


def provider_config(
    provider_id: str,
    *,
    client_id: str,
    client_secret: str,
    redirect_url: str,
    tenant_id: str | None = None,
) -> ProviderConfig:
    endpoints = resolve(provider_id, tenant_id=tenant_id)
    return ProviderConfig(
        authorization_endpoint=endpoints.authorization_endpoint,
        token_endpoint=endpoints.token_endpoint,
        userinfo_endpoint=endpoints.userinfo_endpoint,
        client_id=client_id,
        client_secret=client_secret,
        redirect_url=redirect_url,
        provider_id=_normalize_provider_id(provider_id),
    )


def custom_provider(
    *,
    authorization_endpoint: str,
    token_endpoint: str,
    client_id: str,
    client_secret: str,
    redirect_url: str,
    userinfo_endpoint: str | None = None,
) -> ProviderConfig:
    return ProviderConfig(
        authorization_endpoint=authorization_endpoint,
        token_endpoint=token_endpoint,
        userinfo_endpoint=userinfo_endpoint,
        client_id=client_id,
        client_secret=client_secret,
        redirect_url=redirect_url,
        provider_id=CUSTOM_PROVIDER_ID,
    )


def _normalize_provider_id(provider_id: str) -> str:
    normalized = str(provider_id).strip().lower()
    return _PROVIDER_ALIASES.get(normalized, normalized)


def _validate_tenant(tenant_id: str | None) -> str:
    if tenant_id is None:
        raise InvalidTenantError("microsoft provider requires a tenant_id")
    if not tenant_id.strip():
        raise InvalidTenantError("tenant_id must not be empty")
    if not _TENANT_PATTERN.fullmatch(tenant_id) or tenant_id in {".", ".."}:
        raise InvalidTenantError(f"tenant_id is not URL-safe: {tenant_id!r}")
    return tenant_id
