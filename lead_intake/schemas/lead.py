# lead_intake/schemas/lead.py
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

from lead_intake.services.normalization import normalize_field


class LeadSubmission(BaseModel):
    """A landing-page form post after normalization.

    Every field is a plain string; missing or non-string input becomes "".
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    public_path: str = ""
    email: str = ""
    phone: str = ""
    name: str = ""
    service: str = ""

    # Attribution
    utm_source: str = ""
    utm_campaign: str = ""

    # Honeypot, hidden from humans
    hp: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _normalize(cls, v: Any, info: ValidationInfo) -> str:
        return normalize_field(info.field_name, v)

    @classmethod
    def from_payload(cls, payload: Any) -> "LeadSubmission":
        if not isinstance(payload, Mapping):
            payload = {}
        return cls.model_validate({k: v for k, v in payload.items() if k in cls.model_fields})

    def lead_row(self, landing_id: Any) -> Dict[str, Any]:
        return {
            "landing_id": landing_id,
            "phone": self.phone,
            "email": self.email,
            "name": self.name,
            "service": self.service,
            "utm_source": self.utm_source,
            "utm_campaign": self.utm_campaign,
        }


class LeadResponse(BaseModel):
    ok: bool
    error: Optional[str] = None

    def body(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
