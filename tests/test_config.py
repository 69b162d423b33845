import pytest
from pydantic import ValidationError

from config import Settings


def test_defaults(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://db.example.supabase.co/postgres")
    monkeypatch.delenv("PORT", raising=False)
    monkeypatch.delenv("OPENPHONE_WEBHOOK_SECRET", raising=False)

    settings = Settings(_env_file=None)

    assert settings.port == 3000
    assert settings.openphone_webhook_secret is None
    assert settings.cors_origins == ["*"]


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://db.example.supabase.co/postgres")
    monkeypatch.setenv("SUPABASE_SERVICE_KEY", "service-key")
    monkeypatch.setenv("OPENPHONE_WEBHOOK_SECRET", "whsec")
    monkeypatch.setenv("PORT", "8080")

    settings = Settings(_env_file=None)

    assert settings.database_password == "service-key"
    assert settings.openphone_webhook_secret == "whsec"
    assert settings.port == 8080


def test_database_url_is_required(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    with pytest.raises(ValidationError):
        Settings(_env_file=None)
