"""OAuth flow error taxonomy."""

from __future__ import annotations


class OAuthFlowError(Exception):
    """Base OAuth flow exception for deterministic failure handling."""

    error_code = "oauth_flow_error"
    retryable = False


class UnsupportedProviderError(OAuthFlowError):
    """Raised when a provider id is not in the registry."""

    error_code = "unsupported_provider"


class InvalidRedirectUrlError(OAuthFlowError):
    """Raised when the configured redirect URL is not an absolute http(s) URL."""

    error_code = "invalid_redirect_url"


class InvalidEndpointError(OAuthFlowError):
    """Raised when an authorization, token or userinfo endpoint is malformed."""

    error_code = "invalid_endpoint"


class InvalidTenantError(OAuthFlowError):
    """Raised when a tenant identifier is missing, empty or not URL-safe."""

    error_code = "invalid_tenant"


class ExpiredOrUnknownStateError(OAuthFlowError):
    """Raised when a callback state was never issued, expired or was already used."""

    error_code = "expired_or_unknown_state"


class MissingAuthorizationCodeError(OAuthFlowError):
    """Raised when a callback arrives without an authorization code."""

    error_code = "missing_code"


class TokenExchangeError(OAuthFlowError):
    """Raised when the provider rejects the code/verifier/redirect triple."""

    error_code = "token_exchange_failed"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        error: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error = error


class TransportError(OAuthFlowError):
    """Raised on network-level failures talking to the provider."""

    error_code = "transport_error"
    retryable = True


class StoreUnavailableError(OAuthFlowError):
    """Raised when the pending-authorization backend cannot be reached."""

    error_code = "store_unavailable"
    retryable = True
