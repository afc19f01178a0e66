"""OAuth 2.0 Authorization Code + PKCE flow coordination."""

from oauthflow.auth.pkce import PkceGenerator, PkceTriple
from oauthflow.coordinator import (
    AuthorizationCoordinator,
    AuthorizationUrlResult,
    build_authorization_url,
)
from oauthflow.enums import FlowStatus
from oauthflow.errors import (
    ExpiredOrUnknownStateError,
    InvalidEndpointError,
    InvalidRedirectUrlError,
    InvalidTenantError,
    MissingAuthorizationCodeError,
    OAuthFlowError,
    StoreUnavailableError,
    TokenExchangeError,
    TransportError,
    UnsupportedProviderError,
)
from oauthflow.integrations.token_exchange import TokenExchanger, TokenResult
from oauthflow.providers import (
    ProviderConfig,
    ProviderEndpoints,
    custom_provider,
    provider_config,
    resolve,
)
from oauthflow.stores import (
    CallbackPendingAuthorizationStore,
    InMemoryPendingAuthorizationStore,
    PendingAuthorization,
    PendingAuthorizationStore,
    SqlPendingAuthorizationStore,
)

__all__ = [
    "AuthorizationCoordinator",
    "AuthorizationUrlResult",
    "CallbackPendingAuthorizationStore",
    "ExpiredOrUnknownStateError",
    "FlowStatus",
    "InMemoryPendingAuthorizationStore",
    "InvalidEndpointError",
    "InvalidRedirectUrlError",
    "InvalidTenantError",
    "MissingAuthorizationCodeError",
    "OAuthFlowError",
    "PendingAuthorization",
    "PendingAuthorizationStore",
    "PkceGenerator",
    "PkceTriple",
    "ProviderConfig",
    "ProviderEndpoints",
    "SqlPendingAuthorizationStore",
    "StoreUnavailableError",
    "TokenExchangeError",
    "TokenExchanger",
    "TokenResult",
    "TransportError",
    "UnsupportedProviderError",
    "build_authorization_url",
    "custom_provider",
    "provider_config",
    "resolve",
]
