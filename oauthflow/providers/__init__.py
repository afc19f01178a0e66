"""Provider registry exports."""

from oauthflow.providers.base import CUSTOM_PROVIDER_ID, ProviderConfig, ProviderEndpoints
from oauthflow.providers.registry import (
    MICROSOFT_PROVIDER_ID,
    custom_provider,
    microsoft_endpoints,
    provider_config,
    resolve,
    supported_providers,
)

__all__ = [
    "CUSTOM_PROVIDER_ID",
    "MICROSOFT_PROVIDER_ID",
    "ProviderConfig",
    "ProviderEndpoints",
    "custom_provider",
    "microsoft_endpoints",
    "provider_config",
    "resolve",
    "supported_providers",
]
