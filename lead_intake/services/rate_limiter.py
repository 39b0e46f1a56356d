# lead_intake/services/rate_limiter.py
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from lead_intake.core.exceptions import DependencyError, RateLimitError, StoreError
from lead_intake.core.logging import get_structlog_logger
from lead_intake.services.store import RATE_LIMITS_TABLE, RowStore

logger = get_structlog_logger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RateWindow:
    window_id: str
    starts_at: datetime
    ends_at: datetime


def as_utc(dt: datetime) -> datetime:
    """Naive datetimes are taken to already be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def current_window(now: datetime, window_minutes: int) -> RateWindow:
    """Bucket ``now`` into a fixed UTC window aligned to the hour.

    The window id is the bucket start rendered as ``YYYYMMDDHHMM``.
    """
    now = as_utc(now)

    start = now.replace(
        minute=now.minute - now.minute % window_minutes,
        second=0,
        microsecond=0,
    )
    return RateWindow(
        window_id=start.strftime("%Y%m%d%H%M"),
        starts_at=start,
        ends_at=start + timedelta(minutes=window_minutes),
    )


def rate_limit_key(client_id: str, public_path: str, window_id: str) -> str:
    return f"{client_id}:{public_path}:{window_id}"


class FixedWindowRateLimiter:
    """Per client, per landing, fixed-window request counter.

    The counter is read and then written in two round trips. Two concurrent
    requests can both read N and both write N+1; the limiter then admits
    slightly more than ``limit`` requests but never blocks a legitimate one.
    """

    def __init__(
        self,
        store: RowStore,
        *,
        limit: int = 10,
        window_minutes: int = 10,
        clock: Optional[Clock] = None,
    ):
        self.store = store
        self.limit = limit
        self.window_minutes = window_minutes
        self._clock = clock or utcnow

    async def hit(self, client_id: str, public_path: str) -> int:
        """Count one request and return the count for the current window.

        Raises RateLimitError once the window budget is spent, and
        DependencyError when the counter cannot be read or written.
        """
        now = as_utc(self._clock())
        window = current_window(now, self.window_minutes)
        key = rate_limit_key(client_id, public_path, window.window_id)

        try:
            row = await self.store.select_one(
                RATE_LIMITS_TABLE,
                {"key": key},
                columns=["count", "window_ends_at"],
            )
        except StoreError as e:
            raise DependencyError("Rate limit read failed", code="rl_read_failed") from e

        if row is None:
            try:
                await self.store.insert(
                    RATE_LIMITS_TABLE,
                    [{"key": key, "count": 1, "window_ends_at": window.ends_at}],
                )
            except StoreError as e:
                raise DependencyError("Rate limit insert failed", code="rl_insert_failed") from e
            return 1

        count = int(row.get("count") or 0)
        if count >= self.limit:
            retry_after = math.ceil((window.ends_at - now).total_seconds())
            logger.warning(
                "rate_limit.exceeded",
                client=client_id[:12],
                public_path=public_path,
                window_id=window.window_id,
                count=count,
                retry_after=retry_after,
            )
            raise RateLimitError(
                message="Rate limit exceeded",
                code="rate_limited",
                retry_after=retry_after,
                details={"limit": self.limit, "window_minutes": self.window_minutes},
            )

        try:
            await self.store.update(RATE_LIMITS_TABLE, {"count": count + 1}, {"key": key})
        except StoreError as e:
            raise DependencyError("Rate limit update failed", code="rl_update_failed") from e

        return count + 1
