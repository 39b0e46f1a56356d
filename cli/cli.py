# cli/cli.py
"""
Operational commands for the lead intake service.

    python -m cli.cli init-db
    python -m cli.cli add-landing /promo
    python -m cli.cli purge-rate-limits --grace-minutes 60
"""
from __future__ import annotations

import argparse
import asyncio
import os
import sys
from datetime import timedelta
from typing import Callable, Dict, List, Optional

from lead_intake.core.config import settings
from lead_intake.core.exceptions import BaseAPIException
from lead_intake.core.logging import configure_structlog
from lead_intake.db.session import create_tables
from lead_intake.services.normalization import normalize_field
from lead_intake.services.rate_limiter import utcnow
from lead_intake.services.store import (
    LANDINGS_TABLE,
    RATE_LIMITS_TABLE,
    RowStore,
    build_store,
)


def _supports_color() -> bool:
    """Check if terminal supports ANSI color codes."""
    if sys.platform == "win32":
        return os.getenv("TERM") == "xterm" or os.getenv("ANSICON") is not None
    return sys.stdout.isatty()


SUPPORTS_COLOR = _supports_color()

GREEN = '\033[92m' if SUPPORTS_COLOR else ''
RED = '\033[91m' if SUPPORTS_COLOR else ''
BLUE = '\033[94m' if SUPPORTS_COLOR else ''
RESET = '\033[0m' if SUPPORTS_COLOR else ''


def print_success(message: str):
    print(f"{GREEN}[✓]{RESET} {message}")


def print_error(message: str):
    print(f"{RED}[✗]{RESET} {message}")


def print_info(message: str):
    print(f"{BLUE}[i]{RESET} {message}")


# Command functions
async def cmd_init_db(args: argparse.Namespace, store: RowStore) -> int:
    """Command: create the landings, leads and rate_limits tables."""
    if settings.store_backend != "sqlalchemy":
        print_error("init-db only applies to the sqlalchemy backend; manage Supabase schema in the dashboard")
        return 1

    print_info("Creating tables...")
    await create_tables()
    print_success("Tables created")
    return 0


async def cmd_add_landing(args: argparse.Namespace, store: RowStore) -> int:
    """Command: register a landing page."""
    public_path = normalize_field("public_path", args.public_path)
    if not public_path:
        print_error("public_path must not be empty")
        return 1

    existing = await store.select_one(LANDINGS_TABLE, {"public_path": public_path}, columns=["id"])
    if existing is not None:
        print_error(f"Landing {public_path} already exists (id={existing['id']})")
        return 1

    await store.insert(LANDINGS_TABLE, [{"public_path": public_path, "active": not args.inactive}])
    print_success(f"Landing {public_path} added ({'inactive' if args.inactive else 'active'})")
    return 0


async def cmd_purge_rate_limits(args: argparse.Namespace, store: RowStore) -> int:
    """Command: delete rate limit rows whose window ended before the grace period."""
    if args.grace_minutes < 0:
        print_error("--grace-minutes must be >= 0")
        return 1

    cutoff = utcnow() - timedelta(minutes=args.grace_minutes)
    print_info(f"Purging rate limit windows that ended before {cutoff.isoformat()}")
    deleted = await store.delete_expired(RATE_LIMITS_TABLE, "window_ends_at", cutoff)
    print_success(f"Deleted {deleted} rate limit row(s)")
    return 0


COMMANDS: Dict[str, Callable] = {
    "init-db": cmd_init_db,
    "add-landing": cmd_add_landing,
    "purge-rate-limits": cmd_purge_rate_limits,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lead-intake", description="Lead intake operations")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create database tables")

    add_landing = sub.add_parser("add-landing", help="Register a landing page")
    add_landing.add_argument("public_path")
    add_landing.add_argument("--inactive", action="store_true", help="Create the landing switched off")

    purge = sub.add_parser("purge-rate-limits", help="Delete stale rate limit rows")
    purge.add_argument("--grace-minutes", type=int, default=60)

    return parser


async def run(argv: Optional[List[str]] = None, store: Optional[RowStore] = None) -> int:
    args = build_parser().parse_args(argv)
    owned = store is None

    try:
        if store is None:
            store = build_store()
        return await COMMANDS[args.command](args, store)
    except BaseAPIException as e:
        print_error(f"{e.code}: {e.message}")
        return 2
    finally:
        if owned and store is not None:
            await store.close()


def main(argv: Optional[List[str]] = None) -> int:
    configure_structlog()
    return asyncio.run(run(argv))


if __name__ == "__main__":
    sys.exit(main())
