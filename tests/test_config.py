#!/usr/bin/env python3
"""
Tests for configuration validation and backend selection.
"""

import pytest

from partybot.config import Config
from partybot.database.database import (
    PostgresBackend, SQLiteBackend, UrlBackend, backend_from_config
)


def test_default_database_settings():
    assert Config.DATABASE_TYPE in Config.EMBEDDED_DATABASE_TYPES + Config.NETWORKED_DATABASE_TYPES
    assert Config.PARTY_SIZE_LIMIT >= 0
    assert Config.STORAGE_TIMEOUT > 0


def test_unknown_database_type_is_rejected(monkeypatch):
    monkeypatch.setattr(Config, 'DATABASE_TYPE', 'oracle')
    with pytest.raises(ValueError):
        Config.validate_database()


def test_negative_size_limit_is_rejected(monkeypatch):
    monkeypatch.setattr(Config, 'PARTY_SIZE_LIMIT', -1)
    with pytest.raises(ValueError):
        Config.validate_database()


def test_validate_requires_token(monkeypatch):
    monkeypatch.setattr(Config, 'DISCORD_TOKEN', None)
    with pytest.raises(ValueError, match="DISCORD_TOKEN"):
        Config.validate()


def test_guild_ids_parsing(monkeypatch):
    monkeypatch.setattr(Config, 'DISCORD_GUILD_IDS', '1, 2,3')
    assert Config.get_guild_ids() == [1, 2, 3]

    monkeypatch.setattr(Config, 'DISCORD_GUILD_IDS', 'abc')
    with pytest.raises(ValueError):
        Config.get_guild_ids()


def test_embedded_backend_selected(monkeypatch, tmp_path):
    monkeypatch.setattr(Config, 'DATABASE_URL', '')
    monkeypatch.setattr(Config, 'DATABASE_TYPE', 'embedded-file')
    monkeypatch.setattr(Config, 'SQLITE_PATH', str(tmp_path / 'data' / 'party.db'))

    backend = backend_from_config()

    assert isinstance(backend, SQLiteBackend)
    url = backend.url()
    assert url.drivername == 'sqlite+aiosqlite'
    assert url.database.endswith('party.db')
    assert (tmp_path / 'data').is_dir()


def test_networked_backend_selected(monkeypatch):
    monkeypatch.setattr(Config, 'DATABASE_URL', '')
    monkeypatch.setattr(Config, 'DATABASE_TYPE', 'networked-relational')
    monkeypatch.setattr(Config, 'DB_HOST', 'db.internal')
    monkeypatch.setattr(Config, 'DB_PORT', 5433)
    monkeypatch.setattr(Config, 'DB_NAME', 'parties')
    monkeypatch.setattr(Config, 'DB_USER', 'bot')
    monkeypatch.setattr(Config, 'DB_PASSWORD', 'p@ss')

    backend = backend_from_config()

    assert isinstance(backend, PostgresBackend)
    url = backend.url()
    assert url.drivername == 'postgresql+psycopg'
    assert (url.host, url.port, url.database, url.username, url.password) == (
        'db.internal', 5433, 'parties', 'bot', 'p@ss'
    )
    assert backend.engine_options()['pool_pre_ping'] is True


def test_explicit_url_wins(monkeypatch):
    monkeypatch.setattr(Config, 'DATABASE_TYPE', 'postgresql')
    monkeypatch.setattr(Config, 'DATABASE_URL', 'sqlite:///override.db')

    backend = backend_from_config()

    assert isinstance(backend, UrlBackend)
    assert backend.name == 'sqlite'
    assert backend.url().drivername == 'sqlite+aiosqlite'


def test_sync_postgres_url_gets_async_driver():
    backend = UrlBackend('postgresql://bot@localhost/parties')
    assert backend.url().drivername == 'postgresql+psycopg'
    assert backend.name == 'postgresql'
