"""Pending-authorization store implementations."""

from oauthflow.stores.base import (
    DEFAULT_EVICTION_INTERVAL_SECONDS,
    DEFAULT_TTL_SECONDS,
    PendingAuthorization,
    PendingAuthorizationStore,
    utc_now,
)
from oauthflow.stores.callback import CallbackPendingAuthorizationStore
from oauthflow.stores.memory import InMemoryPendingAuthorizationStore
from oauthflow.stores.sql import SqlPendingAuthorizationStore

__all__ = [
    "DEFAULT_EVICTION_INTERVAL_SECONDS",
    "DEFAULT_TTL_SECONDS",
    "CallbackPendingAuthorizationStore",
    "InMemoryPendingAuthorizationStore",
    "PendingAuthorization",
    "PendingAuthorizationStore",
    "SqlPendingAuthorizationStore",
    "utc_now",
]
