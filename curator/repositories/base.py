"""
Shared asyncpg helpers for repositories
"""
import json


async def init_connection(conn):
    """
    Per-connection setup for the pool (asyncpg.create_pool(init=...))

    JSONB columns (metadata, embedding, citations, conflicts) round-trip as
    plain Python lists/dicts.
    """
    await conn.set_type_codec(
        'jsonb',
        encoder=json.dumps,
        decoder=json.loads,
        schema='pg_catalog',
    )
