# lead_intake/models/landing.py
from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, String, true
from sqlalchemy.orm import Mapped, mapped_column

from lead_intake.db.base import Base, TimestampMixin


class Landing(TimestampMixin, Base):
    """A landing page that leads are attributed to.

    ``active`` is tri-state: only an explicit ``False`` closes the landing.
    """

    __tablename__ = "landings"
    __table_args__ = (
        CheckConstraint("length(public_path) > 0", name="landings_public_path_not_empty"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    public_path: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    active: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True, server_default=true())
