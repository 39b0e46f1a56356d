# lead_intake/services/intake.py
from __future__ import annotations

import json
from typing import Any, Dict, Mapping, Optional, Sequence

from lead_intake.core.config import settings
from lead_intake.core.exceptions import (
    BadRequestError,
    DependencyError,
    ForbiddenError,
    NotFoundError,
    StoreError,
)
from lead_intake.core.logging import get_structlog_logger
from lead_intake.schemas.lead import LeadResponse, LeadSubmission
from lead_intake.services.client_ip import client_fingerprint
from lead_intake.services.rate_limiter import FixedWindowRateLimiter
from lead_intake.services.store import LANDINGS_TABLE, LEADS_TABLE, RowStore
from lead_intake.services.validation import validate_submission

logger = get_structlog_logger(__name__)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def parse_body(raw: Optional[bytes]) -> Any:
    """Decode a strict UTF-8 JSON body; an empty body counts as ``{}``.

    NaN, Infinity and a leading byte order mark are rejected.
    """
    if not raw:
        return {}
    try:
        return json.loads(raw.decode("utf-8"), parse_constant=_reject_constant)
    except (ValueError, RecursionError) as e:
        raise BadRequestError(message="Body is not valid JSON", code="bad_json") from e


class LeadIntake:
    """Runs one submission through the intake pipeline.

    honeypot -> normalize -> validate -> client hash -> rate limit ->
    landing lookup -> lead insert. The first failing step raises a
    BaseAPIException subclass whose ``code`` is returned to the caller.
    """

    def __init__(
        self,
        store: RowStore,
        *,
        rate_limiter: Optional[FixedWindowRateLimiter] = None,
        ip_headers: Optional[Sequence[str]] = None,
    ):
        self.store = store
        self.rate_limiter = rate_limiter or FixedWindowRateLimiter(
            store,
            limit=settings.rate_limit_requests,
            window_minutes=settings.rate_limit_window_minutes,
        )
        self.ip_headers = list(ip_headers) if ip_headers is not None else settings.ip_headers()

    async def handle(self, payload: Any, headers: Mapping[str, str]) -> LeadResponse:
        submission = LeadSubmission.from_payload(payload)

        # Bots get the same answer as humans, and nothing is stored.
        if submission.hp:
            logger.info("honeypot.triggered", public_path=submission.public_path)
            return LeadResponse(ok=True)

        validate_submission(submission)

        client_id = client_fingerprint(headers, self.ip_headers)
        count = await self.rate_limiter.hit(client_id, submission.public_path)

        landing = await self.resolve_landing(submission.public_path)
        await self.record_lead(submission, landing["id"])

        logger.info(
            "lead.accepted",
            landing_id=landing["id"],
            public_path=submission.public_path,
            has_email=bool(submission.email),
            has_phone=bool(submission.phone),
            window_count=count,
        )
        return LeadResponse(ok=True)

    async def resolve_landing(self, public_path: str) -> Dict[str, Any]:
        try:
            landing = await self.store.select_one(
                LANDINGS_TABLE,
                {"public_path": public_path},
                columns=["id", "active"],
            )
        except StoreError as e:
            raise DependencyError("Landing lookup failed", code="landing_lookup_failed") from e

        if landing is None:
            raise NotFoundError(
                message="Landing not found",
                code="landing_not_found",
                details={"public_path": public_path},
            )

        # Only an explicit False closes a landing; null/missing stays open.
        if landing.get("active") is False:
            raise ForbiddenError(
                message="Landing is inactive",
                code="landing_inactive",
                details={"landing_id": landing["id"]},
            )

        return landing

    async def record_lead(self, submission: LeadSubmission, landing_id: Any) -> None:
        try:
            await self.store.insert(LEADS_TABLE, [submission.lead_row(landing_id)])
        except StoreError as e:
            raise DependencyError("Lead insert failed", code="lead_insert_failed") from e
