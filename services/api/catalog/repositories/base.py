"""Generic repository functions parametrized over an EntitySpec.

Every function takes the pooled `Database` handle and the `EntitySpec`
explicitly; there is no repository class hierarchy.

Consistency: `find()` issues its data query and count query concurrently on
two pooled connections with no lock between them. A write that lands between
the two reads can make `total` disagree with the returned page.
"""

import asyncio
from dataclasses import dataclass
import logging
import math
from typing import Any, Awaitable, Generic, Mapping, Sequence, TypeVar

from sqlalchemy import delete as sa_delete
from sqlalchemy import func, select
from sqlalchemy import update as sa_update
from sqlalchemy.sql import Select

from catalog.errors import DatabaseError, DuplicateError, NotFoundError, ValidationError
from catalog.query import EntitySpec, Pagination, Sort, build_limit_offset, build_order, build_where
from catalog.stores.postgres import UNIQUE_VIOLATION, Database

logger = logging.getLogger("uvicorn.error")

ModelT = TypeVar("ModelT")


@dataclass
class Page(Generic[ModelT]):
    """One page of results plus the unpaginated total."""

    items: list[ModelT]
    total: int

    def total_pages(self, limit: int) -> int:
        return math.ceil(self.total / limit) if limit > 0 else 0


async def run_concurrently(*aws: Awaitable[Any]) -> list[Any]:
    """Gather awaitables; if one fails, cancel the rest before re-raising."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def fetch_all(db: Database, stmt: Select[Any], *, timeout: float | None = None) -> list[Any]:
    """Run a SELECT on its own pooled session and return scalars."""
    async with db.session() as session:
        result = await db.execute(session, stmt, timeout=timeout)
        return list(result.scalars().all())


async def fetch_scalar(db: Database, stmt: Select[Any], *, timeout: float | None = None) -> Any:
    async with db.session() as session:
        result = await db.execute(session, stmt, timeout=timeout)
        return result.scalar()


async def fetch_page(
    db: Database,
    data_stmt: Select[Any],
    count_stmt: Select[Any],
    *,
    timeout: float | None = None,
) -> Page[Any]:
    """Run data and count queries concurrently and combine them."""
    items, total = await run_concurrently(
        fetch_all(db, data_stmt, timeout=timeout),
        fetch_scalar(db, count_stmt, timeout=timeout),
    )
    return Page(items=items, total=int(total or 0))


async def find_by_id(
    db: Database,
    entity: EntitySpec[ModelT],
    id: Any,
    *,
    timeout: float | None = None,
) -> ModelT | None:
    async with db.session() as session:
        result = await db.execute(
            session,
            select(entity.model).where(entity.primary_key == id),
            timeout=timeout,
        )
        return result.scalar_one_or_none()


async def get_by_id(
    db: Database,
    entity: EntitySpec[ModelT],
    id: Any,
    *,
    timeout: float | None = None,
) -> ModelT:
    """Like find_by_id, but a missing row raises NotFoundError."""
    row = await find_by_id(db, entity, id, timeout=timeout)
    if row is None:
        raise NotFoundError(entity.name, id)
    return row


async def find(
    db: Database,
    entity: EntitySpec[ModelT],
    filters: Mapping[str, Any] | None = None,
    sorts: Sequence[Sort] | None = None,
    pagination: Pagination | None = None,
    *,
    timeout: float | None = None,
) -> Page[ModelT]:
    """Filtered, sorted, paginated rows plus the total ignoring pagination."""
    where = build_where(entity.fields, filters)
    order = build_order(entity.fields, sorts)
    limit, offset = build_limit_offset(pagination)

    data_stmt = where.apply(select(entity.model)).order_by(*order)
    if limit is not None:
        data_stmt = data_stmt.limit(limit)
    if offset:
        data_stmt = data_stmt.offset(offset)
    count_stmt = where.apply(select(func.count()).select_from(entity.fields.table))

    return await fetch_page(db, data_stmt, count_stmt, timeout=timeout)


async def count(
    db: Database,
    entity: EntitySpec[Any],
    filters: Mapping[str, Any] | None = None,
    *,
    timeout: float | None = None,
) -> int:
    where = build_where(entity.fields, filters)
    stmt = where.apply(select(func.count()).select_from(entity.fields.table))
    return int(await fetch_scalar(db, stmt, timeout=timeout) or 0)


async def exists(
    db: Database,
    entity: EntitySpec[Any],
    id: Any,
    *,
    timeout: float | None = None,
) -> bool:
    stmt = select(entity.primary_key).where(entity.primary_key == id).limit(1)
    return await fetch_scalar(db, stmt, timeout=timeout) is not None


async def create(
    db: Database,
    entity: EntitySpec[ModelT],
    data: Mapping[str, Any],
    *,
    timeout: float | None = None,
) -> ModelT:
    """Insert one row and return it. Unique violations raise DuplicateError."""
    entity.fields.check_writable(dict(data))
    try:
        async with db.session() as session:
            row = entity.model(**data)
            session.add(row)
            await db.run(session.flush(), sql=f"INSERT INTO {entity.name}", timeout=timeout)
    except DatabaseError as e:
        if e.sqlstate == UNIQUE_VIOLATION:
            raise DuplicateError(entity.name) from e
        raise
    return row


async def update(
    db: Database,
    entity: EntitySpec[ModelT],
    id: Any,
    patch: Mapping[str, Any],
    *,
    timeout: float | None = None,
) -> ModelT:
    """Apply `patch` to one row and return the updated row."""
    if not patch:
        raise ValidationError("No data provided for update")
    entity.fields.check_writable(dict(patch))

    stmt = (
        sa_update(entity.model)
        .where(entity.primary_key == id)
        .values(**patch)
        .returning(entity.model)
        .execution_options(synchronize_session=False)
    )
    try:
        async with db.session() as session:
            result = await db.execute(session, stmt, timeout=timeout)
            row = result.scalar_one_or_none()
    except DatabaseError as e:
        if e.sqlstate == UNIQUE_VIOLATION:
            raise DuplicateError(entity.name) from e
        raise
    if row is None:
        raise NotFoundError(entity.name, id)
    return row


async def delete(
    db: Database,
    entity: EntitySpec[Any],
    id: Any,
    *,
    timeout: float | None = None,
) -> bool:
    """True iff a row was removed."""
    stmt = sa_delete(entity.fields.table).where(entity.primary_key == id)
    async with db.session() as session:
        result = await db.execute(session, stmt, timeout=timeout)
        return (result.rowcount or 0) > 0


async def bulk_insert(
    db: Database,
    entity: EntitySpec[ModelT],
    items: Sequence[Mapping[str, Any]],
    *,
    timeout: float | None = None,
) -> list[ModelT]:
    """Insert all items in one transaction; any failure persists nothing."""
    if not items:
        return []
    for item in items:
        entity.fields.check_writable(dict(item))

    try:
        async with db.session() as session:
            rows = [entity.model(**item) for item in items]
            session.add_all(rows)
            await db.run(
                session.flush(),
                sql=f"INSERT INTO {entity.name} ({len(rows)} rows)",
                timeout=timeout,
            )
    except DatabaseError as e:
        logger.warning(f"Bulk insert into {entity.name} rolled back ({len(items)} rows)")
        if e.sqlstate == UNIQUE_VIOLATION:
            raise DuplicateError(entity.name) from e
        raise
    return rows


async def fetch_rows(db: Database, stmt: Select[Any], *, timeout: float | None = None) -> list[Any]:
    """Run a SELECT on its own pooled session and return row tuples."""
    async with db.session() as session:
        result = await db.execute(session, stmt, timeout=timeout)
        return list(result.all())
