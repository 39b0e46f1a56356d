# lead_intake/middleware/logging.py
from __future__ import annotations

import time
from typing import Dict, Mapping, Optional

from fastapi import Request
from fastapi.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware

from lead_intake.core.config import settings
from lead_intake.core.logging import get_structlog_logger

logger = get_structlog_logger(__name__)

_QUIET_PATHS = {"/metrics", "/health/live"}

_SENSITIVE_HEADERS = [
    "authorization",
    "cookie",
    "set-cookie",
    "apikey",
    "x-api-key",
    "secret",
    "token",
    "password",
]


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request/response logging.

    Client addresses are never written to the log; the IP-bearing proxy
    headers are redacted along with credentials.
    """

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        request_id = getattr(request.state, "request_id", None)

        self._log_request(request, request_id)

        try:
            response = await call_next(request)
        except Exception as e:
            self._log_exception(request, e, start_time, request_id)
            raise

        response_time = time.time() - start_time
        response.headers["X-Response-Time"] = f"{response_time:.3f}"

        self._log_response(request, response, response_time, request_id)

        return response

    def _quiet(self, request: Request) -> bool:
        path = request.url.path
        return path in _QUIET_PATHS or path.endswith("/health/live")

    def _log_request(self, request: Request, request_id: Optional[str]) -> None:
        if self._quiet(request):
            return

        logger.info(
            "request.received",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            user_agent=request.headers.get("user-agent", "unknown"),
            content_length=request.headers.get("content-length", "0"),
            headers=self._filter_headers(request.headers),
        )

    def _log_response(
        self,
        request: Request,
        response: Response,
        response_time: float,
        request_id: Optional[str],
    ) -> None:
        if self._quiet(request):
            return

        status_code = response.status_code
        log_data = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "response_time_ms": round(response_time * 1000, 2),
        }

        if 400 <= status_code < 500:
            log_data["error_type"] = "client_error"
        elif status_code >= 500:
            log_data["error_type"] = "server_error"

        if status_code >= 400:
            logger.warning("response.sent", **log_data)
        else:
            logger.info("response.sent", **log_data)

    def _log_exception(
        self,
        request: Request,
        exception: Exception,
        start_time: float,
        request_id: Optional[str],
    ) -> None:
        logger.error(
            "request.exception",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            response_time_ms=round((time.time() - start_time) * 1000, 2),
            exception_type=type(exception).__name__,
        )

    def _filter_headers(self, headers: Mapping[str, str]) -> Dict[str, str]:
        """Redact credentials and client addresses."""
        ip_headers = set(settings.ip_headers()) | {"x-real-ip", "forwarded"}

        filtered = {}
        for key, value in headers.items():
            key_lower = key.lower()
            if key_lower in ip_headers or any(s in key_lower for s in _SENSITIVE_HEADERS):
                filtered[key] = "[REDACTED]"
            else:
                filtered[key] = value

        return filtered
