# lead_intake/middleware/request_id.py
from __future__ import annotations

import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from lead_intake.core.logging import set_request_id


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Middleware to generate and set request IDs."""

    async def dispatch(self, request: Request, call_next):
        request_id = self._get_or_create_request_id(request)

        # Fresh context per request, then bind the id for every log line
        set_request_id(None)
        set_request_id(request_id)
        request.state.request_id = request_id

        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id

        return response

    def _get_or_create_request_id(self, request: Request) -> str:
        """Extract request ID from headers or generate new one."""
        request_id = request.headers.get("X-Request-ID")
        if request_id:
            return request_id[:64]

        # Netlify and most CDNs stamp their own id
        for header in ("X-NF-Request-ID", "X-Correlation-ID"):
            value = request.headers.get(header)
            if value:
                return value[:64]

        # Check for trace ID (OpenTelemetry)
        trace_id = request.headers.get("traceparent")
        if trace_id:
            # Extract trace ID from W3C Trace Context format
            if trace_id.startswith("00-") and len(trace_id) >= 35:
                return trace_id[3:35]

        return str(uuid.uuid4())
