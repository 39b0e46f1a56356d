# lead_intake/models/rate_limit.py
"""SQLAlchemy model for fixed-window rate limit counters."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from lead_intake.db.base import Base


class RateLimit(Base):
    """One row per (client hash, public path, window id)."""

    __tablename__ = "rate_limits"
    __table_args__ = (Index("idx_rate_limits_window_ends_at", "window_ends_at"),)

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    window_ends_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
