# lead_intake/services/supabase_store.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

import httpx
from postgrest.exceptions import APIError
from starlette.concurrency import run_in_threadpool
from supabase import Client, create_client

from lead_intake.core.exceptions import StoreError
from lead_intake.core.logging import get_structlog_logger
from lead_intake.services.store import LANDINGS_TABLE, RowStore

logger = get_structlog_logger(__name__)


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _payload(row: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: _jsonable(v) for k, v in row.items()}


class SupabaseRowStore(RowStore):
    """RowStore backed by a hosted Supabase (PostgREST) project.

    The service-role key bypasses row level security, so this must only run
    server side. The sync client is driven from the threadpool.
    """

    def __init__(self, client: Client):
        self._client = client

    @classmethod
    def from_credentials(cls, url: str, service_role_key: str) -> "SupabaseRowStore":
        return cls(create_client(url, service_role_key))

    async def _call(self, op: str, table: str, fn: Callable[[], Any]) -> Any:
        try:
            return await run_in_threadpool(fn)
        except (APIError, httpx.HTTPError) as e:
            logger.error("supabase.request_failed", op=op, table=table, error_type=type(e).__name__)
            raise StoreError(
                message=f"Supabase {op} failed",
                details={"table": table, "error": str(e)},
            ) from e

    async def select_one(self, table, filters, columns=None) -> Optional[Dict[str, Any]]:
        def run():
            query = self._client.table(table).select(",".join(columns) if columns else "*")
            for key, value in filters.items():
                query = query.eq(key, _jsonable(value))
            return query.limit(1).execute()

        response = await self._call("select", table, run)
        rows = response.data or []
        return dict(rows[0]) if rows else None

    async def insert(self, table, rows: Sequence[Mapping[str, Any]]) -> None:
        payload = [_payload(r) for r in rows]
        await self._call("insert", table, lambda: self._client.table(table).insert(payload).execute())

    async def update(self, table, patch, filters) -> None:
        def run():
            query = self._client.table(table).update(_payload(patch))
            for key, value in filters.items():
                query = query.eq(key, _jsonable(value))
            return query.execute()

        await self._call("update", table, run)

    async def delete_expired(self, table, column, before) -> int:
        response = await self._call(
            "delete",
            table,
            lambda: self._client.table(table).delete().lt(column, before.isoformat()).execute(),
        )
        return len(response.data or [])

    async def ping(self) -> None:
        await self._call(
            "ping",
            LANDINGS_TABLE,
            lambda: self._client.table(LANDINGS_TABLE).select("id").limit(1).execute(),
        )
