"""Field registries: the fixed set of columns a caller may name.

Filter, sort and write keys coming from callers are looked up here before they
can reach a query. Registries are built from the mapped table, so a name that
is not a real column fails at import time rather than at query time.
"""

from dataclasses import dataclass
from typing import Any, Generic, Iterable, TypeVar

from sqlalchemy import Column, Table

from catalog.errors import ValidationError
from catalog.stores.postgres import Base

ModelT = TypeVar("ModelT", bound=Base)


@dataclass(frozen=True)
class FieldRegistry:
    """Allowed field names per purpose for one table."""

    table: Table
    filterable: frozenset[str]
    sortable: frozenset[str]
    writable: frozenset[str]

    @classmethod
    def for_model(
        cls,
        model: type[Base],
        *,
        filterable: Iterable[str] | None = None,
        sortable: Iterable[str] | None = None,
        exclude_writes: Iterable[str] = ("id", "created_at", "updated_at"),
    ) -> "FieldRegistry":
        """Build a registry from a mapped model.

        `filterable`/`sortable` default to every column; writes default to
        every column except `exclude_writes`.
        """
        table: Table = model.__table__  # type: ignore[assignment]
        columns = set(table.columns.keys())

        def _checked(names: Iterable[str] | None, purpose: str) -> frozenset[str]:
            if names is None:
                return frozenset(columns)
            names = frozenset(names)
            unknown = names - columns
            if unknown:
                raise ValueError(f"{table.name}: {purpose} fields not in schema: {sorted(unknown)}")
            return names

        return cls(
            table=table,
            filterable=_checked(filterable, "filterable"),
            sortable=_checked(sortable, "sortable"),
            writable=frozenset(columns - set(exclude_writes)),
        )

    def filter_column(self, name: str) -> Column[Any]:
        return self._lookup(name, self.filterable, "filter")

    def sort_column(self, name: str) -> Column[Any]:
        return self._lookup(name, self.sortable, "sort")

    def check_writable(self, data: dict[str, Any]) -> None:
        unknown = set(data) - self.writable
        if unknown:
            raise ValidationError(
                f"Unknown or read-only fields for {self.table.name}: {sorted(unknown)}",
                {"fields": sorted(unknown)},
            )

    def _lookup(self, name: str, allowed: frozenset[str], purpose: str) -> Column[Any]:
        if name not in allowed:
            raise ValidationError(
                f"Field '{name}' cannot be used to {purpose} {self.table.name}",
                {"field": name},
            )
        return self.table.c[name]


@dataclass(frozen=True)
class EntitySpec(Generic[ModelT]):
    """What the generic repository functions need to know about an entity:
    its mapped model (identifier + columns) and its field registry."""

    model: type[ModelT]
    fields: FieldRegistry

    @property
    def name(self) -> str:
        return self.fields.table.name

    @property
    def primary_key(self) -> Column[Any]:
        pk = list(self.fields.table.primary_key.columns)
        if len(pk) != 1:
            raise ValueError(f"{self.name}: generic repository requires a single-column primary key")
        return pk[0]
