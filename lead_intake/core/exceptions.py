# lead_intake/core/exceptions.py
from __future__ import annotations

from typing import Any, Dict, Optional


class BaseAPIException(Exception):
    """Base exception for all API errors.

    ``code`` is the stable, machine-readable error string returned to the
    caller; ``message`` and ``details`` are for logs only.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    @property
    def headers(self) -> Dict[str, str]:
        return {}


class BadRequestError(BaseAPIException):
    """Client input rejected."""
    def __init__(self, message: str = "Bad request", **kwargs):
        super().__init__(message, status_code=400, **kwargs)


class ForbiddenError(BaseAPIException):
    """Request understood but refused by policy."""
    def __init__(self, message: str = "Forbidden", **kwargs):
        super().__init__(message, status_code=403, **kwargs)


class NotFoundError(BaseAPIException):
    """Resource not found."""
    def __init__(self, message: str = "Resource not found", **kwargs):
        super().__init__(message, status_code=404, **kwargs)


class RateLimitError(BaseAPIException):
    """Rate limit exceeded."""
    def __init__(self, message: str = "Rate limit exceeded", retry_after: Optional[int] = None, **kwargs):
        super().__init__(message, status_code=429, **kwargs)
        self.retry_after = retry_after

    @property
    def headers(self) -> Dict[str, str]:
        if self.retry_after is None:
            return {}
        return {"Retry-After": str(max(0, self.retry_after))}


class DependencyError(BaseAPIException):
    """An upstream dependency (the store) failed."""
    def __init__(self, message: str = "Dependency failure", **kwargs):
        super().__init__(message, status_code=500, **kwargs)


class StoreError(BaseAPIException):
    """Raised by row store implementations for any backend failure."""
    def __init__(self, message: str = "Store error", **kwargs):
        kwargs.setdefault("code", "store_error")
        super().__init__(message, status_code=500, **kwargs)


class ConfigurationError(BaseAPIException):
    """Required configuration is missing or invalid."""
    def __init__(self, message: str = "Configuration error", **kwargs):
        kwargs.setdefault("code", "configuration_error")
        super().__init__(message, status_code=500, **kwargs)
