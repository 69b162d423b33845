"""
Backing store for contacts and communications (Supabase Postgres via asyncpg).
"""

from typing import Any, Mapping, Protocol

import asyncpg

from config import Settings
from logging_setup import get_logger

logger = get_logger(__name__)


class StoreError(Exception):
    """The store rejected or could not complete a write."""


class Store(Protocol):
    async def upsert(
        self,
        table: str,
        row: Mapping[str, Any],
        *,
        on_conflict: str,
        returning: str = "id",
    ) -> Any:
        ...

    async def insert(self, table: str, row: Mapping[str, Any]) -> None:
        ...


def _ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def build_upsert(
    table: str,
    columns: list[str],
    on_conflict: str,
    returning: str = "id",
) -> str:
    updates = [c for c in columns if c != on_conflict] or [on_conflict]
    return f"""
        INSERT INTO {_ident(table)} ({", ".join(_ident(c) for c in columns)})
        VALUES ({", ".join(f"${i}" for i in range(1, len(columns) + 1))})
        ON CONFLICT ({_ident(on_conflict)})
        DO UPDATE SET {", ".join(f"{_ident(c)} = EXCLUDED.{_ident(c)}" for c in updates)}
        RETURNING {_ident(returning)};
        """


def build_insert(table: str, columns: list[str]) -> str:
    return f"""
        INSERT INTO {_ident(table)} ({", ".join(_ident(c) for c in columns)})
        VALUES ({", ".join(f"${i}" for i in range(1, len(columns) + 1))});
        """


class PostgresStore:
    """Store implementation over an asyncpg connection pool."""

    _errors = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def upsert(self, table, row, *, on_conflict, returning="id"):
        columns = list(row)
        sql = build_upsert(table, columns, on_conflict, returning)
        try:
            async with self.pool.acquire() as conn:
                record = await conn.fetchrow(sql, *row.values())
        except self._errors as exc:
            raise StoreError(f"upsert into {table} failed: {exc}") from exc

        if record is None:
            raise StoreError(f"upsert into {table} returned no row")
        return record[returning]

    async def insert(self, table, row):
        sql = build_insert(table, list(row))
        try:
            async with self.pool.acquire() as conn:
                await conn.execute(sql, *row.values())
        except self._errors as exc:
            raise StoreError(f"insert into {table} failed: {exc}") from exc


async def create_pool(settings: Settings) -> asyncpg.Pool:
    """
    Create the connection pool to Supabase Postgres.
    """
    logger.info("Opening database pool")
    return await asyncpg.create_pool(
        dsn=settings.database_url,
        password=settings.database_password,
    )
