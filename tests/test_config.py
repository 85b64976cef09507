"""Environment-driven settings for the server and the database layer."""

import pytest

from mkulima_db.config import DatabaseSettings, load_db_settings
from mkulima_server.config import ServerSettings, load_settings

_SERVER_VARS = [
    "SERVER_HOST", "SERVER_PORT", "SERVER_CORS_ORIGINS", "SERVER_LOG_LEVEL",
    "SERVER_CATALOG_PATH", "SERVER_SEED_CATALOG", "JWT_SECRET", "JWT_EXPIRES_DAYS",
    "REGISTER_DEFAULT_ROLE",
]
_DB_VARS = [
    "DATABASE_URL", "PG_HOST", "PG_PORT", "PG_USER", "PG_PASSWORD", "PG_DATABASE",
    "PG_POOL_SIZE", "PG_MAX_OVERFLOW", "PG_ECHO",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in _SERVER_VARS + _DB_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestServerSettings:

    def test_defaults(self, clean_env):
        assert load_settings() == ServerSettings()

    def test_overrides(self, clean_env):
        clean_env.setenv("SERVER_PORT", "9000")
        clean_env.setenv("SERVER_CORS_ORIGINS", "https://a.example, https://b.example")
        clean_env.setenv("SERVER_LOG_LEVEL", "debug")
        clean_env.setenv("SERVER_SEED_CATALOG", "no")
        clean_env.setenv("REGISTER_DEFAULT_ROLE", "ADMIN")
        settings = load_settings()
        assert settings.port == 9000
        assert settings.cors_origins == ["https://a.example", "https://b.example"]
        assert settings.log_level == "DEBUG"
        assert settings.seed_catalog is False
        assert settings.register_default_role == "admin"

    def test_frozen(self):
        with pytest.raises(AttributeError):
            ServerSettings().port = 1


class TestDatabaseSettings:

    def test_url_from_parts(self, clean_env):
        clean_env.setenv("PG_HOST", "db")
        clean_env.setenv("PG_DATABASE", "survey")
        settings = load_db_settings()
        assert settings.url == "postgresql://mkulima:mkulima@db:5432/survey"
        assert settings.async_url == "postgresql+asyncpg://mkulima:mkulima@db:5432/survey"

    def test_database_url_wins(self, clean_env):
        clean_env.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@h/d")
        clean_env.setenv("PG_HOST", "ignored")
        settings = load_db_settings()
        assert settings.async_url == "postgresql+asyncpg://u:p@h/d"
        assert settings.sync_url == "postgresql://u:p@h/d"

    def test_pool_and_echo(self, clean_env):
        clean_env.setenv("PG_POOL_SIZE", "20")
        clean_env.setenv("PG_ECHO", "true")
        settings = load_db_settings()
        assert settings.pool_size == 20
        assert settings.max_overflow == 10
        assert settings.echo is True

    def test_sync_url_passthrough(self):
        assert DatabaseSettings(url="postgresql://u@h/d").sync_url == "postgresql://u@h/d"
