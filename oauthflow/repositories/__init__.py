"""Repository layer exports."""

from oauthflow.repositories.pending_authorizations import (
    PendingAuthorizationRepository,
    PendingConsumeResult,
    PendingConsumeStatus,
)

__all__ = [
    "PendingAuthorizationRepository",
    "PendingConsumeResult",
    "PendingConsumeStatus",
]
