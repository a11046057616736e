"""
Configuration module for settings and service connections.
"""
from .settings import Settings, get_settings
from .database import (
    PostgresConfig,
    RedisConfig,
    get_postgres_config,
    get_redis_config,
    create_postgres_pool,
    create_job_store,
    create_job_queue,
)

__all__ = [
    'Settings',
    'get_settings',
    'PostgresConfig',
    'RedisConfig',
    'get_postgres_config',
    'get_redis_config',
    'create_postgres_pool',
    'create_job_store',
    'create_job_queue',
]
