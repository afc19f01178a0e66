"""Provider endpoint and client configuration values."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlsplit

from oauthflow.errors import InvalidEndpointError, InvalidRedirectUrlError

CUSTOM_PROVIDER_ID = "custom"


@dataclass(frozen=True, slots=True)
class ProviderEndpoints:
    authorization_endpoint: str
    token_endpoint: str
    userinfo_endpoint: str | None = None


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    """Client registration for one provider.

    Built once and passed by reference into the coordinator; the URLs are
    validated on construction so a bad config fails before any flow starts.
    """

    authorization_endpoint: str
    token_endpoint: str
    client_id: str
    client_secret: str
    redirect_url: str
    userinfo_endpoint: str | None = None
    provider_id: str = CUSTOM_PROVIDER_ID

    def __post_init__(self) -> None:
        if not _is_absolute_http_url(self.redirect_url):
            raise InvalidRedirectUrlError(
                f"redirect_url must be an absolute http(s) URL (received {self.redirect_url!r})"
            )
        endpoints = {
            "authorization_endpoint": self.authorization_endpoint,
            "token_endpoint": self.token_endpoint,
        }
        if self.userinfo_endpoint is not None:
            endpoints["userinfo_endpoint"] = self.userinfo_endpoint
        for name, value in endpoints.items():
            if not _is_absolute_http_url(value):
                raise InvalidEndpointError(
                    f"{name} must be an absolute http(s) URL (received {value!r})"
                )

    @property
    def endpoints(self) -> ProviderEndpoints:
        return ProviderEndpoints(
            authorization_endpoint=self.authorization_endpoint,
            token_endpoint=self.token_endpoint,
            userinfo_endpoint=self.userinfo_endpoint,
        )

    def __repr__(self) -> str:
        return (
            f"ProviderConfig(provider_id={self.provider_id!r}, "
            f"client_id={self.client_id!r}, redirect_url={self.redirect_url!r})"
        )


def _is_absolute_http_url(value: str) -> bool:
    if not isinstance(value, str) or not value or value != value.strip():
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return parts.scheme in {"http", "https"} and bool(parts.hostname) and not parts.fragment
