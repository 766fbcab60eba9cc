"""
Async database access helpers (raw SQL) using asyncpg.

This module owns the connection pool. FastAPI initializes it on startup and
closes it on shutdown (see `ecommerce_api/main.py`).

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...

Every helper accepts an optional `conn`. Pass the connection yielded by
`transaction()` to run several statements atomically; otherwise the pool is
used directly.
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

from . import config

_pool: asyncpg.Pool | None = None


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def database_url() -> str:
    url = os.environ.get("DATABASE_URL", "").strip()
    if not url:
        return config.database_url_from_parts()
    return _sanitize_database_url(url)


async def init_pool() -> None:
    global _pool
    if _pool is not None:
        return None
    _pool = await asyncpg.create_pool(
        dsn=database_url(),
        min_size=config.db_pool_min_size(),
        max_size=config.db_pool_max_size(),
        command_timeout=30,
    )


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return None
    await _pool.close()
    _pool = None


def pool() -> asyncpg.Pool:
    if _pool is None:
        raise RuntimeError("DB pool is not initialized. Call init_pool() on startup.")
    return _pool


def _executor(conn: asyncpg.Connection | None) -> asyncpg.Connection | asyncpg.Pool:
    return conn if conn is not None else pool()


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


@asynccontextmanager
async def transaction() -> AsyncIterator[asyncpg.Connection]:
    """
    Acquire a connection and open a transaction on it.

    Commits when the block exits normally, rolls back on any exception.
    """
    async with pool().acquire() as conn:  # type: asyncpg.Connection
        async with conn.transaction():
            yield conn


async def fetch_one(sql: str, *args: Any, conn: asyncpg.Connection | None = None) -> dict[str, Any] | None:
    """
    Run a query and return a single row as a dict (or None).
    """
    row = await _executor(conn).fetchrow(sql, *args)
    return _record_to_dict(row) if row is not None else None


async def fetch_all(sql: str, *args: Any, conn: asyncpg.Connection | None = None) -> list[dict[str, Any]]:
    """
    Run a query and return all rows as a list of dicts.
    """
    rows = await _executor(conn).fetch(sql, *args)
    return [_record_to_dict(r) for r in rows]


async def fetch_val(sql: str, *args: Any, conn: asyncpg.Connection | None = None) -> Any:
    return await _executor(conn).fetchval(sql, *args)


async def execute(sql: str, *args: Any, conn: asyncpg.Connection | None = None) -> str:
    """
    Run a statement (INSERT/UPDATE/DELETE/DDL).

    Returns asyncpg's status string, e.g. "DELETE 1".
    """
    return await _executor(conn).execute(sql, *args)


def affected_rows(status: str) -> int:
    # "UPDATE 3" -> 3, "INSERT 0 1" -> 1
    try:
        return int((status or "").rsplit(" ", 1)[-1])
    except ValueError:
        return 0


async def ping() -> bool:
    try:
        return await fetch_val("SELECT 1") == 1
    except (OSError, RuntimeError, asyncpg.PostgresError):
        return False
