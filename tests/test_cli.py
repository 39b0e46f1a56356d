# tests/test_cli.py
import asyncio
from datetime import timedelta

from cli.cli import build_parser, run
from lead_intake.core.config import settings
from lead_intake.services.rate_limiter import utcnow


def test_parser_defaults():
    args = build_parser().parse_args(["purge-rate-limits"])
    assert args.grace_minutes == 60

    args = build_parser().parse_args(["add-landing", "/promo", "--inactive"])
    assert args.public_path == "/promo"
    assert args.inactive is True


def test_add_landing(store, capsys):
    code = asyncio.run(run(["add-landing", "  /promo  "], store=store))

    assert code == 0
    assert store.tables["landings"] == [{"public_path": "/promo", "active": True, "id": 1}]
    assert "added" in capsys.readouterr().out


def test_add_inactive_landing(store):
    asyncio.run(run(["add-landing", "/paused", "--inactive"], store=store))
    assert store.tables["landings"][0]["active"] is False


def test_add_landing_rejects_duplicate(store, capsys):
    store.add_landing("/promo")

    code = asyncio.run(run(["add-landing", "/promo"], store=store))

    assert code == 1
    assert len(store.tables["landings"]) == 1
    assert "already exists" in capsys.readouterr().out


def test_add_landing_rejects_blank_path(store):
    assert asyncio.run(run(["add-landing", "   "], store=store)) == 1
    assert store.calls == []


def test_purge_rate_limits_respects_grace(store):
    now = utcnow()
    store.tables["rate_limits"] = [
        {"key": "old", "count": 10, "window_ends_at": now - timedelta(hours=3)},
        {"key": "recent", "count": 4, "window_ends_at": now - timedelta(minutes=20)},
        {"key": "open", "count": 1, "window_ends_at": now + timedelta(minutes=5)},
    ]

    code = asyncio.run(run(["purge-rate-limits", "--grace-minutes", "60"], store=store))

    assert code == 0
    assert [r["key"] for r in store.tables["rate_limits"]] == ["recent", "open"]


def test_purge_rejects_negative_grace(store):
    assert asyncio.run(run(["purge-rate-limits", "--grace-minutes", "-5"], store=store)) == 1
    assert store.calls == []


def test_store_error_exits_with_2(store, capsys):
    store.fail.add(("select", "landings"))

    code = asyncio.run(run(["add-landing", "/promo"], store=store))

    assert code == 2
    assert "store_error" in capsys.readouterr().out


def test_init_db_refused_for_supabase(store, monkeypatch):
    monkeypatch.setattr(settings, "store_backend", "supabase")
    assert asyncio.run(run(["init-db"], store=store)) == 1
