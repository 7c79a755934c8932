"""
Async database access helpers (raw SQL).

`Database` is the one storage handle the app uses. It is built by
`Database.connect(settings)` during startup, stored on `app.state.db` and
handed to route handlers through the `get_db` dependency.

Every call goes through the same path:
- translate the logical `?` statement for the backend (core.dialects)
- acquire a pooled connection (bounded; waits up to the acquire timeout)
- execute, release the connection on every exit path
- normalize rows and re-tag backend errors into core.errors

Backends:
- postgres: asyncpg pool, `$1, $2, ...` placeholders
- sqlite: stdlib sqlite3 connections in a bounded queue, run in worker threads
"""

from __future__ import annotations

import asyncio
import logging
import re
import sqlite3
from collections.abc import AsyncIterator, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import asyncpg
from fastapi import Request

from .config import Settings, sqlite_path
from .dialects import Dialect, dialect_for, normalize_row, translate
from .errors import AppError, ConstraintViolation, ResourceExhausted, StorageError

logger = logging.getLogger(__name__)

_SQLITE_CONSTRAINT_RE = re.compile(r"^(UNIQUE|FOREIGN KEY|CHECK|NOT NULL) constraint failed(?::\s*(.+))?$")
_SQLITE_KINDS = {
    "UNIQUE": "unique",
    "FOREIGN KEY": "foreign_key",
    "CHECK": "check",
    "NOT NULL": "not_null",
}


@dataclass(frozen=True)
class MutationResult:
    last_id: int | None
    rows_changed: int


class _SQLiteBackend:
    def __init__(self, path: str, *, pool_size: int, acquire_timeout: float, busy_timeout: float) -> None:
        self._path = path
        self._in_memory = path == ":memory:"
        # Every :memory: connection is a separate database.
        self._pool_size = 1 if self._in_memory else max(1, pool_size)
        self._acquire_timeout = acquire_timeout
        self._busy_timeout = busy_timeout
        self._idle: asyncio.Queue[sqlite3.Connection] | None = None
        self._connections: list[sqlite3.Connection] = []

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self._path,
            timeout=self._busy_timeout,
            check_same_thread=False,
            isolation_level=None,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        if not self._in_memory:
            conn.execute("PRAGMA journal_mode = WAL")
            conn.execute("PRAGMA synchronous = NORMAL")
        return conn

    async def open(self) -> None:
        if self._idle is not None:
            return None
        if not self._in_memory:
            Path(self._path).parent.mkdir(parents=True, exist_ok=True)
        self._idle = asyncio.Queue(maxsize=self._pool_size)
        for _ in range(self._pool_size):
            conn = await asyncio.to_thread(self._connect)
            self._connections.append(conn)
            self._idle.put_nowait(conn)

    async def close(self) -> None:
        for conn in self._connections:
            await asyncio.to_thread(conn.close)
        self._connections.clear()
        self._idle = None

    @asynccontextmanager
    async def _acquire(self) -> AsyncIterator[sqlite3.Connection]:
        if self._idle is None:
            raise RuntimeError("SQLite pool is not initialized. Call open() on startup.")
        try:
            conn = await asyncio.wait_for(self._idle.get(), timeout=self._acquire_timeout)
        except asyncio.TimeoutError as exc:
            raise ResourceExhausted("Base de datos ocupada, intenta de nuevo") from exc
        try:
            yield conn
        finally:
            self._idle.put_nowait(conn)

    async def fetch_all(self, sql: str, values: Sequence[Any]) -> list[Mapping[str, Any]]:
        def run(conn: sqlite3.Connection) -> list[Mapping[str, Any]]:
            return [dict(row) for row in conn.execute(sql, values).fetchall()]

        async with self._acquire() as conn:
            return await asyncio.to_thread(run, conn)

    async def fetch_one(self, sql: str, values: Sequence[Any]) -> Mapping[str, Any] | None:
        def run(conn: sqlite3.Connection) -> Mapping[str, Any] | None:
            row = conn.execute(sql, values).fetchone()
            return dict(row) if row is not None else None

        async with self._acquire() as conn:
            return await asyncio.to_thread(run, conn)

    async def execute(self, sql: str, values: Sequence[Any]) -> MutationResult:
        def run(conn: sqlite3.Connection) -> MutationResult:
            cursor = conn.execute(sql, values)
            return MutationResult(last_id=cursor.lastrowid or None, rows_changed=max(cursor.rowcount, 0))

        async with self._acquire() as conn:
            return await asyncio.to_thread(run, conn)

    async def insert(self, sql: str, values: Sequence[Any]) -> MutationResult:
        # lastrowid is read on the same connection, inside the same acquire.
        return await self.execute(sql, values)

    def wrap_error(self, exc: Exception) -> AppError:
        if isinstance(exc, sqlite3.IntegrityError):
            message = str(exc)
            match = _SQLITE_CONSTRAINT_RE.match(message)
            kind = _SQLITE_KINDS[match.group(1)] if match else "unique"
            constraint = match.group(2) if match else None
            if constraint and constraint.startswith("index "):
                constraint = constraint[len("index ") :].strip("'\"")
            return ConstraintViolation(_constraint_message(kind), constraint=constraint, kind=kind)
        if isinstance(exc, sqlite3.OperationalError) and "locked" in str(exc).lower():
            return ResourceExhausted("Base de datos ocupada, intenta de nuevo")
        return StorageError(detail=f"{type(exc).__name__}: {exc}")


class _PostgresBackend:
    def __init__(
        self,
        dsn: str,
        *,
        min_size: int,
        max_size: int,
        acquire_timeout: float,
        command_timeout: float,
    ) -> None:
        self._dsn = dsn
        self._min_size = min_size
        self._max_size = max_size
        self._acquire_timeout = acquire_timeout
        self._command_timeout = command_timeout
        self._pool: asyncpg.Pool | None = None

    async def open(self) -> None:
        if self._pool is not None:
            return None
        self._pool = await asyncpg.create_pool(
            dsn=self._dsn,
            min_size=self._min_size,
            max_size=self._max_size,
            command_timeout=self._command_timeout,
        )

    async def close(self) -> None:
        if self._pool is None:
            return None
        await self._pool.close()
        self._pool = None

    @asynccontextmanager
    async def _acquire(self) -> AsyncIterator[asyncpg.Connection]:
        if self._pool is None:
            raise RuntimeError("DB pool is not initialized. Call open() on startup.")
        try:
            conn = await self._pool.acquire(timeout=self._acquire_timeout)
        except asyncio.TimeoutError as exc:
            raise ResourceExhausted("Base de datos ocupada, intenta de nuevo") from exc
        try:
            yield conn
        finally:
            await self._pool.release(conn)

    async def fetch_all(self, sql: str, values: Sequence[Any]) -> list[Mapping[str, Any]]:
        async with self._acquire() as conn:
            rows = await conn.fetch(sql, *values)
        return [dict(r) for r in rows]

    async def fetch_one(self, sql: str, values: Sequence[Any]) -> Mapping[str, Any] | None:
        async with self._acquire() as conn:
            row = await conn.fetchrow(sql, *values)
        return dict(row) if row is not None else None

    async def execute(self, sql: str, values: Sequence[Any]) -> MutationResult:
        async with self._acquire() as conn:
            status_line = await conn.execute(sql, *values)
        # Command tags look like "UPDATE 3", "DELETE 0", "INSERT 0 1".
        last = (status_line or "").rsplit(" ", 1)[-1]
        return MutationResult(last_id=None, rows_changed=int(last) if last.isdigit() else 0)

    async def insert(self, sql: str, values: Sequence[Any]) -> MutationResult:
        async with self._acquire() as conn:
            row = await conn.fetchrow(sql, *values)
        return MutationResult(last_id=int(row["id"]) if row is not None else None, rows_changed=1)

    def wrap_error(self, exc: Exception) -> AppError:
        if isinstance(exc, asyncpg.IntegrityConstraintViolationError):
            if isinstance(exc, asyncpg.UniqueViolationError):
                kind = "unique"
            elif isinstance(exc, asyncpg.ForeignKeyViolationError):
                kind = "foreign_key"
            elif isinstance(exc, asyncpg.NotNullViolationError):
                kind = "not_null"
            else:
                kind = "check"
            constraint = getattr(exc, "constraint_name", None)
            return ConstraintViolation(_constraint_message(kind), constraint=constraint, kind=kind)
        if isinstance(exc, asyncpg.TooManyConnectionsError):
            return ResourceExhausted("Base de datos ocupada, intenta de nuevo")
        return StorageError(detail=f"{type(exc).__name__}: {exc}")


def _constraint_message(kind: str) -> str:
    if kind == "unique":
        return "Ya existe un registro con ese valor"
    if kind == "foreign_key":
        return "El registro referenciado no existe o está en uso"
    return "Los datos no cumplen las restricciones de la base de datos"


class Database:
    def __init__(self, backend: _SQLiteBackend | _PostgresBackend, dialect: Dialect) -> None:
        self._backend = backend
        self._dialect = dialect

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        backend_name = settings.backend
        if backend_name == "postgres":
            backend: _SQLiteBackend | _PostgresBackend = _PostgresBackend(
                settings.database_url,
                min_size=settings.db_pool_min,
                max_size=settings.db_pool_max,
                acquire_timeout=settings.db_acquire_timeout,
                command_timeout=settings.db_command_timeout,
            )
        else:
            backend = _SQLiteBackend(
                sqlite_path(settings.database_url),
                pool_size=settings.db_pool_max,
                acquire_timeout=settings.db_acquire_timeout,
                busy_timeout=settings.db_command_timeout,
            )
        return cls(backend, dialect_for(backend_name))

    @classmethod
    async def connect(cls, settings: Settings) -> "Database":
        database = cls.from_settings(settings)
        await database.open()
        return database

    async def open(self) -> None:
        await self._backend.open()
        logger.info("database_opened dialect=%s", self._dialect.name)

    async def close(self) -> None:
        await self._backend.close()
        logger.info("database_closed dialect=%s", self._dialect.name)

    async def _run(self, op: str, sql: str, args: Sequence[Any]) -> Any:
        text, values = translate(sql, args, self._dialect)
        try:
            return await getattr(self._backend, op)(text, values)
        except AppError:
            raise
        except Exception as exc:
            wrapped = self._backend.wrap_error(exc)
            if isinstance(wrapped, StorageError):
                logger.error("storage_failed op=%s error=%s", op, wrapped.detail)
            else:
                logger.info("storage_rejected op=%s kind=%s error=%s", op, type(wrapped).__name__, exc)
            raise wrapped from exc

    async def fetch_all(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        """
        Run a query and return all rows as a list of dicts.
        """
        rows = await self._run("fetch_all", sql, args)
        return [normalize_row(r) for r in rows]

    async def fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        """
        Run a query and return its first row as a dict (or None).
        """
        row = await self._run("fetch_one", sql, args)
        return normalize_row(row) if row is not None else None

    async def execute(self, sql: str, *args: Any) -> MutationResult:
        """
        Run a statement (UPDATE/DELETE/DDL) and report how many rows changed.
        """
        return await self._run("execute", sql, args)

    async def insert(self, sql: str, *args: Any) -> MutationResult:
        """
        Run an INSERT and return the generated primary key with it.
        """
        return await self._run("insert", sql + self._dialect.returning_id(), args)


def get_db(request: Request) -> Database:
    return request.app.state.db
