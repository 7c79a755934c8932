from datetime import date

import pytest

from core.errors import QueryShapeError, ValidationError
from core.query import (
    ListFilters,
    Page,
    TableSpec,
    build_count_query,
    build_list_query,
    build_update,
    date_range_clause,
    escape_like,
    normalize_list_params,
)

PURCHASES = TableSpec(
    table="compras_materiales",
    alias="cm",
    joins="JOIN materiales m ON cm.material_id = m.id",
    select="cm.id, cm.fecha",
    order_by=("cm.fecha DESC", "cm.id DESC"),
    columns={"date": "cm.fecha", "tariff": "cm.tipo_precio", "material_id": "cm.material_id"},
    search_columns=("cm.cliente",),
)


def test_normalize_defaults():
    filters = normalize_list_params()
    assert filters == ListFilters()
    assert filters.page == 1
    assert filters.page_size == 100
    assert filters.offset == 0


def test_normalize_parses_values():
    filters = normalize_list_params(
        fecha_inicio="2024-01-01",
        fecha_fin=" 2024-01-31 ",
        tipo_precio="camion",
        material_id="7",
        activo="false",
        buscar="  juan  ",
        pagina="3",
        limite="20",
    )
    assert filters.date_from == date(2024, 1, 1)
    assert filters.date_to == date(2024, 1, 31)
    assert filters.tariff == "camion"
    assert filters.material_id == 7
    assert filters.active is False
    assert filters.search == "juan"
    assert filters.offset == 40


def test_normalize_blank_values_are_unset():
    filters = normalize_list_params(fecha_inicio="", buscar="   ", tipo_precio=" ")
    assert filters.date_from is None
    assert filters.search is None
    assert filters.tariff is None


def test_normalize_clamps_page_size():
    assert normalize_list_params(limite="10000").page_size == 500
    assert normalize_list_params(limite="10000", max_page_size=50).page_size == 50


@pytest.mark.parametrize(
    "kwargs",
    [
        {"fecha_inicio": "01/02/2024"},
        {"tipo_precio": "madrugada"},
        {"material_id": "abc"},
        {"pagina": "0"},
        {"limite": "-5"},
        {"pagina": "99999999999999999999"},
        {"material_id": "9223372036854775808"},
        {"activo": "quizas"},
        {"fecha_inicio": "2024-02-01", "fecha_fin": "2024-01-01"},
    ],
)
def test_normalize_rejects_bad_input(kwargs):
    with pytest.raises(ValidationError):
        normalize_list_params(**kwargs)


def test_list_query_without_filters():
    sql, values = build_list_query(PURCHASES, ListFilters(page=2, page_size=10))
    assert "WHERE" not in sql
    assert sql.endswith("ORDER BY cm.fecha DESC, cm.id DESC LIMIT ? OFFSET ?")
    assert values == [10, 10]


def test_list_query_binds_every_value():
    filters = ListFilters(
        date_from=date(2024, 1, 1),
        date_to=date(2024, 1, 31),
        tariff="noche",
        search="ana",
        page_size=25,
    )
    sql, values = build_list_query(PURCHASES, filters)
    assert "cm.fecha >= ? AND cm.fecha <= ? AND cm.tipo_precio = ?" in sql
    assert "LOWER(cm.cliente) LIKE LOWER(?)" in sql
    assert values == [date(2024, 1, 1), date(2024, 1, 31), "noche", "%ana%", 25, 0]
    assert sql.count("?") == len(values)


def test_hostile_search_stays_a_value():
    sql, values = build_list_query(PURCHASES, ListFilters(search="'; DROP TABLE materiales; --"))
    assert "DROP" not in sql
    assert values[0] == "%'; DROP TABLE materiales; --%"


def test_count_query_matches_list_filters():
    filters = ListFilters(material_id=3, page=4, page_size=5)
    sql, values = build_count_query(PURCHASES, filters)
    assert sql == (
        "SELECT COUNT(*) AS total FROM compras_materiales cm "
        "JOIN materiales m ON cm.material_id = m.id WHERE cm.material_id = ?"
    )
    assert values == [3]


def test_undeclared_filter_is_a_programming_error():
    with pytest.raises(QueryShapeError):
        build_list_query(PURCHASES, ListFilters(category_id=1))


def test_page_meta():
    page = Page(rows=[], page=2, page_size=10, total=21)
    assert page.meta() == {"page": 2, "pageSize": 10, "total": 21, "totalPages": 3}
    assert Page(rows=[], page=1, page_size=10, total=0).total_pages == 0


def test_build_update():
    sql, values = build_update("materiales", {"nombre": "X", "activo": False}, 9, touch="fecha_actualizacion")
    assert sql == "UPDATE materiales SET nombre = ?, activo = ?, fecha_actualizacion = CURRENT_TIMESTAMP WHERE id = ?"
    assert values == ["X", False, 9]
    assert build_update("gastos", {}, 1) is None


def test_date_range_clause():
    assert date_range_clause("fecha", None, None) == ("", [])
    sql, values = date_range_clause("v.fecha", date(2024, 1, 1), None, keyword="AND")
    assert sql == " AND v.fecha >= ?"
    assert values == [date(2024, 1, 1)]


def test_largest_bindable_id_is_accepted():
    assert normalize_list_params(material_id="9223372036854775807").material_id == 2**63 - 1


def test_like_wildcards_are_escaped():
    assert escape_like("50%_a\\b") == "50\\%\\_a\\\\b"
    sql, values = build_list_query(PURCHASES, ListFilters(search="_"))
    assert "LIKE LOWER(?) ESCAPE '\\'" in sql
    assert values[0] == "%\\_%"
