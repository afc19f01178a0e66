"""SQLAlchemy ORM models for durable pending authorizations."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from oauthflow.db.base import Base


class OauthPending(Base):
    __tablename__ = "oauth_pending"
    __table_args__ = (Index("idx_oauth_pending_created_at", "created_at"),)

    state: Mapped[str] = mapped_column(Text, primary_key=True)
    verifier: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
