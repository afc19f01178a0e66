"""Database layer exports."""

from oauthflow.db.base import Base
from oauthflow.db.models import OauthPending

__all__ = [
    "Base",
    "OauthPending",
]
