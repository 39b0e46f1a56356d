# lead_intake/db/__init__.py
"""
Database package for SQLAlchemy setup, session management, and base models.
"""

from lead_intake.db.base import Base
from lead_intake.db.session import (
    create_database_engine,
    create_tables,
    dispose_engine,
    get_sessionmaker,
    transaction_session,
)

__all__ = [
    "Base",
    "create_database_engine",
    "create_tables",
    "dispose_engine",
    "get_sessionmaker",
    "transaction_session",
]
