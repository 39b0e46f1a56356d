# tests/conftest.py
import os

# Settings are read at import time
os.environ["ENVIRONMENT"] = "testing"
os.environ["STORE_BACKEND"] = "sqlalchemy"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Set, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from lead_intake.core.exceptions import StoreError
from lead_intake.db.base import Base
from lead_intake.main import app
from lead_intake.routes.lead import get_intake
from lead_intake.services.intake import LeadIntake
from lead_intake.services.rate_limiter import FixedWindowRateLimiter
from lead_intake.services.store import RowStore, SqlAlchemyRowStore, get_store


class FakeStore(RowStore):
    """In-memory RowStore that records every call.

    ``fail`` holds (operation, table) pairs that raise StoreError.
    """

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {"rate_limits": [], "landings": [], "leads": []}
        self.calls: List[Tuple[str, str]] = []
        self.fail: Set[Tuple[str, str]] = set()
        self._next_id = 1

    def _check(self, op: str, table: str) -> None:
        self.calls.append((op, table))
        if (op, table) in self.fail:
            raise StoreError(f"{op} on {table} failed")

    @staticmethod
    def _matches(row, filters) -> bool:
        return all(row.get(k) == v for k, v in filters.items())

    async def select_one(self, table, filters, columns=None):
        self._check("select", table)
        for row in self.tables[table]:
            if self._matches(row, filters):
                if columns:
                    return {c: row.get(c) for c in columns}
                return dict(row)
        return None

    async def insert(self, table, rows):
        self._check("insert", table)
        for row in rows:
            row = dict(row)
            if table != "rate_limits":
                row.setdefault("id", self._next_id)
                self._next_id += 1
            self.tables[table].append(row)

    async def update(self, table, patch, filters):
        self._check("update", table)
        for row in self.tables[table]:
            if self._matches(row, filters):
                row.update(patch)

    async def delete_expired(self, table, column, before):
        self._check("delete", table)
        keep = [r for r in self.tables[table] if not r[column] < before]
        deleted = len(self.tables[table]) - len(keep)
        self.tables[table] = keep
        return deleted

    async def ping(self):
        self._check("ping", "landings")

    def add_landing(self, public_path: str, **extra) -> Dict[str, Any]:
        row = {"id": self._next_id, "public_path": public_path, **extra}
        self._next_id += 1
        self.tables["landings"].append(row)
        return row


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2024, 5, 17, 12, 34, 56, tzinfo=timezone.utc))


@pytest.fixture
def intake(store, clock) -> LeadIntake:
    limiter = FixedWindowRateLimiter(store, limit=10, window_minutes=10, clock=clock)
    return LeadIntake(store, rate_limiter=limiter)


@pytest.fixture
def client(store, intake):
    async def _store():
        return store

    async def _intake():
        return intake

    app.dependency_overrides[get_store] = _store
    app.dependency_overrides[get_intake] = _intake
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
async def engine():
    """
    Fresh in-memory DB per test. StaticPool makes all connections share the same
    in-memory database for the lifetime of this engine fixture.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def sql_store(engine) -> SqlAlchemyRowStore:
    return SqlAlchemyRowStore(async_sessionmaker(engine, expire_on_commit=False))
