"""Query builder: declarative filter/sort/pagination specs -> bound SQL fragments.

Filter semantics per value shape:
- list / tuple / set   -> IN (one bound parameter per element)
- str containing "%"   -> case-insensitive partial match (ILIKE)
- Range(low, high)     -> inclusive range (BETWEEN, or one-sided >= / <=)
- None                 -> ignored
- anything else        -> equality

Values are always bound parameters. Field names are resolved through a
FieldRegistry, so caller-supplied keys never reach the query text.

Note: with no sort given, ordering falls back to primary key descending.
A sort on a non-unique field without a unique tie-breaker is not a total
order; under concurrent writes rows can repeat or go missing across pages.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Sequence

from sqlalchemy import Enum as SAEnum
from sqlalchemy import String, and_
from sqlalchemy.dialects import postgresql
from sqlalchemy.engine import Dialect
from sqlalchemy.sql import ClauseElement, ColumnElement, Select
from sqlalchemy.sql.elements import UnaryExpression

from catalog.errors import ValidationError
from catalog.query.fields import FieldRegistry

WILDCARD = "%"


@dataclass(frozen=True)
class Range:
    """Inclusive range; either bound may be open (None)."""

    low: Any = None
    high: Any = None


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class Sort:
    field: str
    direction: SortDirection = SortDirection.DESC


@dataclass(frozen=True)
class Pagination:
    """Either explicit offset+limit, or 1-based page+limit."""

    page: int | None = None
    limit: int | None = None
    offset: int | None = None

    def __post_init__(self) -> None:
        if self.page is not None and self.page < 1:
            raise ValidationError("page must be >= 1", {"page": self.page})
        if self.limit is not None and self.limit < 1:
            raise ValidationError("limit must be >= 1", {"limit": self.limit})
        if self.offset is not None and self.offset < 0:
            raise ValidationError("offset must be >= 0", {"offset": self.offset})


@dataclass
class WhereClause:
    """Conjunction of bound criteria."""

    criteria: list[ColumnElement[bool]] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.criteria)

    def apply(self, stmt: Select[Any]) -> Select[Any]:
        return stmt.where(*self.criteria) if self.criteria else stmt

    def render(self, dialect: Dialect | None = None) -> tuple[str, list[Any]]:
        """Render as ("WHERE ...", ordered params); ("", []) when empty."""
        if not self.criteria:
            return "", []
        text_, params = render(and_(*self.criteria), dialect)
        return f"WHERE {text_}", params


def build_where(fields: FieldRegistry, filters: Mapping[str, Any] | None) -> WhereClause:
    """Build the WHERE conjunction for `filters`.

    An empty/None mapping yields an empty clause (unconditional scan); callers
    are responsible for guarding against that. An empty list matches nothing.
    """
    where = WhereClause()
    for name, value in (filters or {}).items():
        if value is None:
            continue
        column = fields.filter_column(name)

        if isinstance(value, (list, tuple, set, frozenset)):
            where.criteria.append(column.in_(list(value)))
        elif isinstance(value, Range):
            if value.low is not None and value.high is not None:
                where.criteria.append(column.between(value.low, value.high))
            elif value.low is not None:
                where.criteria.append(column >= value.low)
            elif value.high is not None:
                where.criteria.append(column <= value.high)
        elif isinstance(value, str) and WILDCARD in value:
            if not isinstance(column.type, String) or isinstance(column.type, SAEnum):
                raise ValidationError(
                    f"Partial match is only supported on text fields, not '{name}'",
                    {"field": name},
                )
            where.criteria.append(column.ilike(value))
        else:
            where.criteria.append(column == value)
    return where


def build_order(fields: FieldRegistry, sorts: Sequence[Sort] | None) -> list[UnaryExpression[Any]]:
    """ORDER BY items; primary key descending when no sort is given."""
    if not sorts:
        return [pk.desc() for pk in fields.table.primary_key.columns]

    order: list[UnaryExpression[Any]] = []
    for sort in sorts:
        column = fields.sort_column(sort.field)
        direction = SortDirection(sort.direction)
        order.append(column.asc() if direction is SortDirection.ASC else column.desc())
    return order


def build_limit_offset(pagination: Pagination | None) -> tuple[int | None, int | None]:
    """(limit, offset). Explicit offset wins; otherwise (page-1)*limit."""
    if pagination is None:
        return None, None
    limit = pagination.limit
    if pagination.offset is not None:
        return limit, pagination.offset
    if pagination.page is not None and limit is not None:
        return limit, (pagination.page - 1) * limit
    return limit, None


def render(clause: ClauseElement, dialect: Dialect | None = None) -> tuple[str, list[Any]]:
    """Compile a clause to (sql text, ordered bound params).

    Expanding IN parameters are rendered one placeholder per element.
    Defaults to the PostgreSQL dialect.
    """
    compiled = clause.compile(
        dialect=dialect or postgresql.dialect(),
        compile_kwargs={"render_postcompile": True},
    )
    params = compiled.params
    if compiled.positiontup:
        return str(compiled), [params[name] for name in compiled.positiontup]
    return str(compiled), list(params.values())
