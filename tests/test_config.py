# tests/test_config.py
import pytest
from pydantic import ValidationError

from lead_intake.core.config import Settings
from lead_intake.core.exceptions import ConfigurationError


def make_settings(**overrides) -> Settings:
    values = {"ENVIRONMENT": "testing", "DATABASE_URL": "sqlite+aiosqlite:///:memory:"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_defaults():
    s = make_settings()
    assert s.rate_limit_requests == 10
    assert s.rate_limit_window_minutes == 10
    assert s.api_prefix == "/api"
    assert s.ip_headers() == ["x-nf-client-connection-ip", "x-forwarded-for"]


@pytest.mark.parametrize("minutes", [1, 5, 10, 15, 30, 60])
def test_window_divides_hour(minutes):
    assert make_settings(RATE_LIMIT_WINDOW_MINUTES=minutes).rate_limit_window_minutes == minutes


@pytest.mark.parametrize("minutes", [0, 7, 45, 90])
def test_window_must_divide_hour(minutes):
    with pytest.raises(ValidationError):
        make_settings(RATE_LIMIT_WINDOW_MINUTES=minutes)


def test_unknown_backend_rejected():
    with pytest.raises(ValidationError):
        make_settings(STORE_BACKEND="dynamo")


def test_ip_headers_are_normalized():
    s = make_settings(CLIENT_IP_HEADERS=" CF-Connecting-IP , X-Forwarded-For,, ")
    assert s.ip_headers() == ["cf-connecting-ip", "x-forwarded-for"]


def test_origins_lists():
    assert make_settings(ALLOWED_ORIGINS="*").origins() == ["*"]
    assert make_settings(ALLOWED_ORIGINS="https://a.example, https://b.example").origins() == [
        "https://a.example",
        "https://b.example",
    ]


def test_supabase_backend_requires_url_and_key():
    s = make_settings(STORE_BACKEND="supabase", SUPABASE_URL="https://x.supabase.co", SUPABASE_SERVICE_ROLE="")

    with pytest.raises(ConfigurationError) as exc_info:
        s.require_store_credentials()

    assert exc_info.value.code == "configuration_error"
    assert exc_info.value.details["missing"] == ["SUPABASE_SERVICE_ROLE"]


def test_supabase_backend_with_credentials_passes():
    s = make_settings(
        STORE_BACKEND="supabase",
        SUPABASE_URL="https://x.supabase.co",
        SUPABASE_SERVICE_ROLE="service-role-key",
    )
    s.require_store_credentials()


def test_sqlalchemy_backend_requires_database_url():
    s = make_settings(DATABASE_URL="")

    with pytest.raises(ConfigurationError) as exc_info:
        s.require_store_credentials()

    assert exc_info.value.details["missing"] == ["DATABASE_URL"]
