"""
Database Configuration
======================

Connection configuration for workers and services, read from Settings.
Every factory returns an explicitly connected handle; callers own its
lifecycle and must close it (no module-level singletons).
"""
from dataclasses import dataclass
from typing import Optional

from curator.config.settings import Settings, get_settings


@dataclass
class PostgresConfig:
    """PostgreSQL connection configuration."""
    dsn: str
    min_size: int = 2
    max_size: int = 10

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None,
                      min_size: int = 2, max_size: int = 10) -> 'PostgresConfig':
        """Create config from application settings."""
        settings = settings or get_settings()
        return cls(dsn=settings.database_url, min_size=min_size, max_size=max_size)

    def to_asyncpg_kwargs(self) -> dict:
        """Convert to asyncpg.create_pool kwargs."""
        return {
            'dsn': self.dsn,
            'min_size': self.min_size,
            'max_size': self.max_size,
        }


@dataclass
class RedisConfig:
    """Redis connection configuration."""
    url: str

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> 'RedisConfig':
        """Create config from application settings."""
        settings = settings or get_settings()
        if not settings.redis_url:
            raise ValueError("REDIS_URL must not be empty")
        return cls(url=settings.redis_url)


def get_postgres_config(min_size: int = 2, max_size: int = 10) -> PostgresConfig:
    """Get PostgreSQL configuration from settings."""
    return PostgresConfig.from_settings(min_size=min_size, max_size=max_size)


def get_redis_config() -> RedisConfig:
    """Get Redis configuration from settings."""
    return RedisConfig.from_settings()


async def create_postgres_pool(min_size: int = 2, max_size: int = 10):
    """Create PostgreSQL connection pool from settings."""
    import asyncpg
    from curator.repositories.base import init_connection
    config = get_postgres_config(min_size=min_size, max_size=max_size)
    return await asyncpg.create_pool(init=init_connection, **config.to_asyncpg_kwargs())


async def create_job_store():
    """Create and connect the Redis job store from settings."""
    from curator.services.job_store import JobStore
    store = JobStore(get_redis_config().url)
    await store.connect()
    return store


async def create_job_queue(store=None):
    """Create a JobQueue over a connected store (a new one if not given)."""
    from curator.services.job_queue import JobQueue
    if store is None:
        store = await create_job_store()
    settings = get_settings()
    return JobQueue(
        store,
        status_ttl=settings.job_status_ttl,
        meta_ttl=settings.job_meta_ttl,
    )
