# lead_intake/schemas/__init__.py
"""
Pydantic schemas for request normalization and response serialization.
"""

from lead_intake.schemas.lead import LeadResponse, LeadSubmission

__all__ = [
    "LeadResponse",
    "LeadSubmission",
]
