"""External provider integrations."""

from oauthflow.integrations.token_exchange import (
    TokenExchanger,
    TokenExchangerProtocol,
    TokenResult,
)

__all__ = [
    "TokenExchanger",
    "TokenExchangerProtocol",
    "TokenResult",
]
