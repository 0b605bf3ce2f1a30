"""Declarative filter/sort/pagination specs compiled into bound SQL fragments."""

from catalog.query.builder import (
    WILDCARD,
    Pagination,
    Range,
    Sort,
    SortDirection,
    WhereClause,
    build_limit_offset,
    build_order,
    build_where,
    render,
)
from catalog.query.fields import EntitySpec, FieldRegistry

__all__ = [
    "WILDCARD",
    "EntitySpec",
    "FieldRegistry",
    "Pagination",
    "Range",
    "Sort",
    "SortDirection",
    "WhereClause",
    "build_limit_offset",
    "build_order",
    "build_where",
    "render",
]
