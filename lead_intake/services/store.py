# lead_intake/services/store.py
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Sequence

from sqlalchemy import Table, delete, insert, select, text, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

import lead_intake.models  # noqa: F401  (registers tables on Base.metadata)
from lead_intake.core.config import settings
from lead_intake.core.exceptions import StoreError
from lead_intake.core.logging import get_structlog_logger
from lead_intake.db.base import Base
from lead_intake.db.session import dispose_engine, transaction_session

logger = get_structlog_logger(__name__)

RATE_LIMITS_TABLE = "rate_limits"
LANDINGS_TABLE = "landings"
LEADS_TABLE = "leads"


class RowStore(ABC):
    """Row-oriented persistence used by the intake pipeline.

    Filters are column equality only. Every backend failure is raised as
    ``StoreError``; implementations never retry.
    """

    @abstractmethod
    async def select_one(
        self,
        table: str,
        filters: Mapping[str, Any],
        columns: Optional[Sequence[str]] = None,
    ) -> Optional[Dict[str, Any]]:
        """Return the first matching row, or None."""

    @abstractmethod
    async def insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> None:
        ...

    @abstractmethod
    async def update(self, table: str, patch: Mapping[str, Any], filters: Mapping[str, Any]) -> None:
        ...

    @abstractmethod
    async def delete_expired(self, table: str, column: str, before: datetime) -> int:
        """Delete rows whose ``column`` is strictly older than ``before``."""

    @abstractmethod
    async def ping(self) -> None:
        ...

    async def close(self) -> None:
        return None


class SqlAlchemyRowStore(RowStore):
    """RowStore over the async SQLAlchemy engine.

    Each call runs in its own short transaction.
    """

    def __init__(self, sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None):
        self._sessionmaker = sessionmaker
        self._owns_engine = sessionmaker is None

    def _table(self, name: str) -> Table:
        try:
            return Base.metadata.tables[name]
        except KeyError:
            raise StoreError(f"Unknown table: {name}", details={"table": name}) from None

    async def select_one(self, table, filters, columns=None):
        t = self._table(table)
        selected = [t.c[c] for c in columns] if columns else [t]
        stmt = select(*selected).where(*[t.c[k] == v for k, v in filters.items()]).limit(1)

        async with transaction_session(self._sessionmaker) as session:
            result = await session.execute(stmt)
            row = result.mappings().first()

        return dict(row) if row is not None else None

    async def insert(self, table, rows):
        t = self._table(table)
        async with transaction_session(self._sessionmaker) as session:
            await session.execute(insert(t), [dict(r) for r in rows])

    async def update(self, table, patch, filters):
        t = self._table(table)
        stmt = update(t).where(*[t.c[k] == v for k, v in filters.items()]).values(**patch)
        async with transaction_session(self._sessionmaker) as session:
            await session.execute(stmt)

    async def delete_expired(self, table, column, before):
        t = self._table(table)
        async with transaction_session(self._sessionmaker) as session:
            result = await session.execute(delete(t).where(t.c[column] < before))
        return int(result.rowcount or 0)

    async def ping(self) -> None:
        async with transaction_session(self._sessionmaker) as session:
            await session.execute(text("SELECT 1"))

    async def close(self) -> None:
        if self._owns_engine:
            await dispose_engine()


# Process-wide store handle, created on first use
_store: Optional[RowStore] = None


def build_store() -> RowStore:
    settings.require_store_credentials()

    if settings.store_backend == "supabase":
        from lead_intake.services.supabase_store import SupabaseRowStore

        return SupabaseRowStore.from_credentials(settings.supabase_url, settings.supabase_service_role)

    return SqlAlchemyRowStore()


async def get_store() -> RowStore:
    """FastAPI dependency returning the shared store."""
    global _store

    if _store is None:
        _store = build_store()
        logger.info("store.initialized", backend=settings.store_backend)

    return _store


async def close_store() -> None:
    global _store

    if _store is not None:
        await _store.close()
        _store = None
        logger.info("store.closed")
