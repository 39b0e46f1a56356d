# lead_intake/models/__init__.py
"""
SQLAlchemy ORM models for database entities.
"""

from lead_intake.models.landing import Landing
from lead_intake.models.lead import Lead
from lead_intake.models.rate_limit import RateLimit

__all__ = [
    "Landing",
    "Lead",
    "RateLimit",
]
