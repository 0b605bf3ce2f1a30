"""PostgreSQL store with async SQLAlchemy.

Handles:
- Connection pool lifecycle (explicit handle, created at startup, drained at shutdown)
- Session/transaction scoping
- Query timing, diagnostics logging and error wrapping

The pool is owned by a `Database` instance that callers receive through
dependency injection (FastAPI app state, scripts, tests). There is no
module-level engine.
"""

import asyncio
from collections.abc import AsyncGenerator, Awaitable
from contextlib import asynccontextmanager
import logging
import time
from typing import Any, TypeVar

from sqlalchemy import exc as sa_exc
from sqlalchemy import text
from sqlalchemy.engine import Result
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.sql import Executable

from catalog.errors import DatabaseError, PoolTimeoutError, QueryTimeoutError
from catalog.settings import Settings, get_settings

logger = logging.getLogger("uvicorn.error")

T = TypeVar("T")

UNIQUE_VIOLATION = "23505"
SQLITE_UNIQUE_ERRORS = ("SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY")


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


def _sqlstate(exc: sa_exc.DBAPIError) -> str | None:
    """Extract the provider error code from a wrapped DBAPI error.

    asyncpg exposes `sqlstate` (on the adapted error or its cause), psycopg
    exposes `pgcode`. sqlite3 unique/primary-key failures are reported as
    unique violations so the duplicate mapping holds on SQLite too.
    """
    orig = exc.orig
    for candidate in (orig, getattr(orig, "__cause__", None)):
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return str(code)
        if getattr(candidate, "sqlite_errorname", None) in SQLITE_UNIQUE_ERRORS:
            return UNIQUE_VIOLATION
    if isinstance(exc, sa_exc.IntegrityError):
        return "23000"
    return None


class Database:
    """Pooled database handle shared by concurrent callers."""

    def __init__(self, engine: AsyncEngine, *, log_query_chars: int = 100) -> None:
        self.engine = engine
        self.log_query_chars = log_query_chars
        self._session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session scoped to one unit of work; commits on success, rolls back on error.

        Usage:
            async with db.session() as session:
                result = await db.execute(session, query)
        """
        async with self._session_factory() as session:
            start = time.perf_counter()
            try:
                yield session
                await self.run(session.commit(), sql=self._label(session, "COMMIT"))
            except sa_exc.SQLAlchemyError as e:
                await session.rollback()
                elapsed_ms = (time.perf_counter() - start) * 1000
                raise self._wrap(e, self._label(session, "SESSION"), elapsed_ms) from e
            except BaseException:
                await session.rollback()
                raise

    async def execute(
        self,
        session: AsyncSession,
        statement: Executable,
        *,
        timeout: float | None = None,
    ) -> Result[Any]:
        """Execute a statement with timing, timeout and error wrapping."""
        session.info["last_statement"] = statement
        return await self.run(
            session.execute(statement),
            sql=lambda: self._render(statement),
            timeout=timeout,
        )

    async def run(
        self,
        awaitable: Awaitable[T],
        *,
        sql: Any = "",
        timeout: float | None = None,
    ) -> T:
        """Await a database operation, mapping failures onto the error taxonomy.

        `sql` is either query text or a zero-arg callable producing it; it is
        only rendered when something is logged.
        """
        start = time.perf_counter()
        try:
            if timeout is not None:
                result = await asyncio.wait_for(awaitable, timeout)
            else:
                result = await awaitable
        except asyncio.TimeoutError as e:
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.error(f"Query timed out: {self._truncate(sql)} ({elapsed_ms:.1f}ms)")
            raise QueryTimeoutError() from e
        except sa_exc.SQLAlchemyError as e:
            raise self._wrap(e, sql, (time.perf_counter() - start) * 1000) from e

        if logger.isEnabledFor(logging.DEBUG):
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.debug(f"Query executed: {self._truncate(sql)} ({elapsed_ms:.1f}ms)")
        return result

    async def ping(self) -> bool:
        """Health check: True if a pooled connection answers SELECT 1."""
        async with self.session() as session:
            result = await self.execute(session, text("SELECT 1"))
            return result.scalar() == 1

    async def create_tables(self) -> None:
        """Create all tables (for development/testing only)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self) -> None:
        """Drop all tables (for testing only)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()

    def pool_status(self) -> dict[str, object]:
        pool = self.engine.pool
        return {"status": pool.status()}

    def _wrap(self, exc: sa_exc.SQLAlchemyError, sql: Any, elapsed_ms: float) -> DatabaseError:
        if isinstance(exc, sa_exc.TimeoutError):
            logger.error(f"Connection pool exhausted after {elapsed_ms:.1f}ms: {self._truncate(sql)}")
            return PoolTimeoutError()

        code = _sqlstate(exc) if isinstance(exc, sa_exc.DBAPIError) else None
        logger.error(
            f"Query failed [{code or 'UNKNOWN'}]: {self._truncate(sql)} ({elapsed_ms:.1f}ms)"
        )
        return DatabaseError("Database operation failed", code)

    def _label(self, session: AsyncSession, action: str) -> Any:
        """`action` plus the last statement run through `execute`, rendered lazily."""
        last = session.info.get("last_statement")
        if last is None:
            return action
        return lambda: f"{action} after {self._render(last)}"

    def _render(self, statement: Executable) -> str:
        try:
            return str(statement.compile(dialect=self.engine.dialect))
        except sa_exc.SQLAlchemyError:
            return statement.__class__.__name__

    def _truncate(self, sql: Any) -> str:
        text_ = sql() if callable(sql) else str(sql)
        text_ = " ".join(text_.split())
        if len(text_) > self.log_query_chars:
            return text_[: self.log_query_chars] + "..."
        return text_


def create_database(settings: Settings | None = None) -> Database:
    """Build a Database handle (engine + pool) from settings."""
    settings = settings or get_settings()
    engine = create_async_engine(
        settings.async_database_url,
        echo=settings.debug,
        connect_args=settings.asyncpg_connect_args,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_pre_ping=True,
    )
    return Database(engine, log_query_chars=settings.db_log_query_chars)


async def init_db(settings: Settings | None = None) -> Database:
    """Initialize the connection pool and verify connectivity."""
    db = create_database(settings)
    await db.ping()
    logger.info("Postgres connected")
    return db


async def close_db(db: Database | None) -> None:
    """Drain the connection pool."""
    if db is not None:
        await db.dispose()
        logger.info("Postgres pool closed")
