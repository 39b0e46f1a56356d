# lead_intake/models/lead.py
from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
)

from lead_intake.db.base import Base, TimestampMixin


class Lead(TimestampMixin, Base):
    __tablename__ = "leads"

    id = Column(Integer, primary_key=True, autoincrement=True)

    landing_id = Column(ForeignKey("landings.id", ondelete="RESTRICT"), nullable=False, index=True)

    # Stored exactly as normalized at intake; empty string means "not given".
    phone = Column(String(40), nullable=False, server_default="")
    email = Column(String(120), nullable=False, server_default="")
    name = Column(String(80), nullable=False, server_default="")
    service = Column(String(80), nullable=False, server_default="")

    utm_source = Column(String(120), nullable=False, server_default="")
    utm_campaign = Column(String(120), nullable=False, server_default="")

    __table_args__ = (
        Index("idx_leads_landing_created_at", "landing_id", "created_at"),
        Index("idx_leads_email", "email"),
        Index("idx_leads_phone", "phone"),
        CheckConstraint(
            "length(email) > 0 OR length(phone) > 0",
            name="leads_has_contact",
        ),
    )
