"""
Test: Configuration
===================

Settings-driven connection configuration for Postgres and Redis.
"""

import pytest

from curator.config import PostgresConfig, RedisConfig, Settings, get_redis_config, get_settings


@pytest.fixture
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:

    def test_database_url_built_from_components(self, monkeypatch):
        monkeypatch.delenv('DATABASE_URL', raising=False)

        settings = Settings(
            _env_file=None,
            postgres_host='db',
            postgres_port=5433,
            postgres_user='reader',
            postgres_password='secret',
            postgres_db='links',
        )

        assert settings.database_url == 'postgresql://reader:secret@db:5433/links'

    def test_explicit_database_url_wins(self, monkeypatch):
        monkeypatch.setenv('DATABASE_URL', 'postgresql://u:p@elsewhere:5432/other')

        settings = Settings(_env_file=None, postgres_host='db')

        assert settings.database_url == 'postgresql://u:p@elsewhere:5432/other'


class TestConnectionConfig:

    def test_postgres_config_uses_settings_dsn(self, monkeypatch):
        monkeypatch.delenv('DATABASE_URL', raising=False)
        settings = Settings(_env_file=None, postgres_host='db', postgres_db='links')

        kwargs = PostgresConfig.from_settings(settings, min_size=1, max_size=4).to_asyncpg_kwargs()

        assert kwargs['dsn'].endswith('@db:5432/links')
        assert kwargs['min_size'] == 1
        assert kwargs['max_size'] == 4

    def test_redis_config_uses_settings_url(self):
        settings = Settings(_env_file=None, redis_url='redis://cache:6380/2')

        assert RedisConfig.from_settings(settings).url == 'redis://cache:6380/2'

    def test_empty_redis_url_rejected(self):
        with pytest.raises(ValueError):
            RedisConfig.from_settings(Settings(_env_file=None, redis_url=''))

    def test_factories_read_cached_settings(self, monkeypatch, fresh_settings):
        monkeypatch.setenv('REDIS_URL', 'redis://queue-host:6379')

        assert get_redis_config().url == 'redis://queue-host:6379'
