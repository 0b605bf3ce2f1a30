import pytest

from catalog.errors import ValidationError
from catalog.models import Product
from catalog.query import (
    FieldRegistry,
    Pagination,
    Range,
    Sort,
    SortDirection,
    WhereClause,
    build_limit_offset,
    build_order,
    build_where,
)
from catalog.repositories.products import PRODUCTS


def test_list_value_renders_in_with_one_param_per_element():
    sql, params = build_where(PRODUCTS.fields, {"category": ["Snacks", "Drinks", "Dairy"]}).render()
    assert "IN (" in sql
    assert sorted(params) == ["Dairy", "Drinks", "Snacks"]
    for value in params:
        assert value not in sql


def test_wildcard_string_renders_ilike():
    sql, params = build_where(PRODUCTS.fields, {"name": "%choco%"}).render()
    assert "ILIKE" in sql
    assert params == ["%choco%"]


def test_plain_value_renders_equality():
    sql, params = build_where(PRODUCTS.fields, {"country": "India"}).render()
    assert sql.startswith("WHERE ")
    assert "products.country =" in sql
    assert params == ["India"]


def test_range_renders_between_or_single_bound():
    sql, params = build_where(PRODUCTS.fields, {"mrp": Range(10, 50)}).render()
    assert "BETWEEN" in sql
    assert params == [10, 50]

    sql, params = build_where(PRODUCTS.fields, {"mrp": Range(low=10)}).render()
    assert ">=" in sql and "BETWEEN" not in sql
    assert params == [10]

    sql, params = build_where(PRODUCTS.fields, {"mrp": Range(high=50)}).render()
    assert "<=" in sql
    assert params == [50]


def test_none_values_are_skipped_and_empty_filters_give_no_clause():
    assert build_where(PRODUCTS.fields, {"brand": None}).render() == ("", [])
    assert build_where(PRODUCTS.fields, {}).render() == ("", [])
    assert not build_where(PRODUCTS.fields, None)


def test_multiple_filters_are_conjoined():
    sql, params = build_where(PRODUCTS.fields, {"country": "India", "is_npd": True}).render()
    assert " AND " in sql
    assert len(params) == 2


def test_unknown_field_is_rejected():
    with pytest.raises(ValidationError):
        build_where(PRODUCTS.fields, {"name; DROP TABLE products": "x"})


def test_values_never_reach_query_text():
    hostile = "x'; DROP TABLE products; --"
    sql, params = build_where(PRODUCTS.fields, {"brand": hostile}).render()
    assert "DROP" not in sql
    assert params == [hostile]


def test_wildcard_on_non_text_field_is_rejected():
    with pytest.raises(ValidationError):
        build_where(PRODUCTS.fields, {"verification_status": "%ver%"})


def test_default_order_is_primary_key_desc():
    order = build_order(PRODUCTS.fields, None)
    assert len(order) == 1
    assert str(order[0]) == "products.id DESC"


def test_order_uses_requested_fields_and_directions():
    order = build_order(
        PRODUCTS.fields,
        [Sort("name", SortDirection.ASC), Sort("created_at", SortDirection.DESC)],
    )
    assert [str(o) for o in order] == ["products.name ASC", "products.created_at DESC"]


def test_order_rejects_unsortable_field():
    with pytest.raises(ValidationError):
        build_order(PRODUCTS.fields, [Sort("description")])


def test_limit_offset():
    assert build_limit_offset(None) == (None, None)
    assert build_limit_offset(Pagination(page=3, limit=10)) == (10, 20)
    assert build_limit_offset(Pagination(page=3, limit=10, offset=5)) == (10, 5)
    assert build_limit_offset(Pagination(limit=7)) == (7, None)


@pytest.mark.parametrize("kwargs", [{"page": 0}, {"limit": 0}, {"offset": -1}])
def test_invalid_pagination(kwargs):
    with pytest.raises(ValidationError):
        Pagination(**kwargs)


def test_registry_rejects_names_outside_schema():
    with pytest.raises(ValueError):
        FieldRegistry.for_model(Product, filterable=("name", "not_a_column"))


def test_registry_write_check():
    PRODUCTS.fields.check_writable({"name": "x", "brand": "y"})
    with pytest.raises(ValidationError):
        PRODUCTS.fields.check_writable({"id": "x"})
    with pytest.raises(ValidationError):
        PRODUCTS.fields.check_writable({"bogus": 1})


def test_empty_where_clause_leaves_statement_untouched():
    from sqlalchemy import select

    stmt = select(Product)
    assert WhereClause().apply(stmt) is stmt
