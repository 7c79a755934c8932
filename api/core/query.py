"""
List-endpoint query building.

Two steps, both pure:

1. `normalize_list_params()` turns raw query-string values into a typed
   `ListFilters` record (dates parsed, tariff checked, page/limit clamped).
2. `build_list_query()` / `build_count_query()` turn that record plus a
   `TableSpec` into a `?`-placeholder statement and its values.

Only identifiers from a `TableSpec` are ever written into SQL text. Every
filter value travels as a bound parameter.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Annotated, Any

from fastapi import Path

from .errors import QueryShapeError, ValidationError

TARIFFS = ("ordinario", "camion", "noche")

DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 500

# Largest value a BIGINT / sqlite INTEGER column can bind.
MAX_ID = 2**63 - 1

# Primary key taken from the URL path.
RowId = Annotated[int, Path(gt=0, le=MAX_ID)]

LIKE_ESCAPE = "ESCAPE '\\'"


@dataclass(frozen=True)
class ListFilters:
    date_from: date | None = None
    date_to: date | None = None
    tariff: str | None = None
    material_id: int | None = None
    category_id: int | None = None
    category: str | None = None
    active: bool | None = None
    search: str | None = None
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass(frozen=True)
class TableSpec:
    """
    Fixed description of one listable table.

    `columns` maps a `ListFilters` field to the qualified column it filters.
    `search_columns` are OR-ed together for the free-text filter.
    `order_by` must end in a unique column so pages never overlap.
    """

    table: str
    alias: str
    select: str
    order_by: tuple[str, ...]
    joins: str = ""
    columns: dict[str, str] = field(default_factory=dict)
    search_columns: tuple[str, ...] = ()

    @property
    def source(self) -> str:
        text = f"{self.table} {self.alias}"
        if self.joins:
            text += f" {self.joins}"
        return text


@dataclass(frozen=True)
class Page:
    rows: list[dict[str, Any]]
    page: int
    page_size: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0

    def meta(self) -> dict[str, int]:
        return {
            "page": self.page,
            "pageSize": self.page_size,
            "total": self.total,
            "totalPages": self.total_pages,
        }


def _clean(raw: str | None) -> str | None:
    if raw is None:
        return None
    text = raw.strip()
    return text or None


def parse_date(raw: str | None, *, field_name: str) -> date | None:
    text = _clean(raw)
    if text is None:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError as exc:
        raise ValidationError(f"{field_name} debe tener formato YYYY-MM-DD") from exc


def parse_positive_int(raw: str | None, *, field_name: str) -> int | None:
    text = _clean(raw)
    if text is None:
        return None
    try:
        value = int(text)
    except ValueError as exc:
        raise ValidationError(f"{field_name} debe ser un número entero") from exc
    if value <= 0:
        raise ValidationError(f"{field_name} debe ser mayor a cero")
    if value > MAX_ID:
        raise ValidationError(f"{field_name} está fuera de rango")
    return value


def parse_bool(raw: str | None, *, field_name: str) -> bool | None:
    text = _clean(raw)
    if text is None:
        return None
    lowered = text.lower()
    if lowered in ("true", "1"):
        return True
    if lowered in ("false", "0"):
        return False
    raise ValidationError(f"{field_name} debe ser true o false")


def parse_tariff(raw: str | None) -> str | None:
    text = _clean(raw)
    if text is None:
        return None
    if text not in TARIFFS:
        raise ValidationError("Tipo de precio debe ser: ordinario, camion o noche")
    return text


def normalize_list_params(
    *,
    fecha_inicio: str | None = None,
    fecha_fin: str | None = None,
    tipo_precio: str | None = None,
    material_id: str | None = None,
    categoria_id: str | None = None,
    categoria: str | None = None,
    activo: str | None = None,
    buscar: str | None = None,
    pagina: str | None = None,
    limite: str | None = None,
    default_page_size: int = DEFAULT_PAGE_SIZE,
    max_page_size: int = MAX_PAGE_SIZE,
) -> ListFilters:
    """
    Build the canonical filter record from raw query-string values.

    Raises ValidationError for malformed dates, unknown tariffs, non-numeric
    ids and non-positive page numbers or sizes. Page sizes above the cap are
    clamped, not rejected.
    """
    date_from = parse_date(fecha_inicio, field_name="fecha_inicio")
    date_to = parse_date(fecha_fin, field_name="fecha_fin")
    if date_from and date_to and date_from > date_to:
        raise ValidationError("fecha_inicio no puede ser posterior a fecha_fin")

    page = parse_positive_int(pagina, field_name="pagina") or 1
    page_size = parse_positive_int(limite, field_name="limite") or default_page_size
    page_size = min(page_size, max_page_size)
    if (page - 1) * page_size > MAX_ID:
        raise ValidationError("pagina está fuera de rango")

    return ListFilters(
        date_from=date_from,
        date_to=date_to,
        tariff=parse_tariff(tipo_precio),
        material_id=parse_positive_int(material_id, field_name="material_id"),
        category_id=parse_positive_int(categoria_id, field_name="categoria_id"),
        category=_clean(categoria),
        active=parse_bool(activo, field_name="activo"),
        search=_clean(buscar),
        page=page,
        page_size=page_size,
    )


def escape_like(term: str) -> str:
    """Make `%`, `_` and `\\` match literally under `LIKE ... ESCAPE '\\'`."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def like_contains(term: str) -> str:
    return f"%{escape_like(term)}%"


def like_prefix(term: str) -> str:
    return f"{escape_like(term)}%"


def build_conditions(spec: TableSpec, filters: ListFilters) -> list[tuple[str, list[Any]]]:
    """
    Ordered (condition, values) pairs for every filter that is set.

    A set filter whose column the table does not declare is a programming
    error, not user input, and fails with QueryShapeError.
    """

    def column(name: str) -> str:
        try:
            return spec.columns[name]
        except KeyError as exc:
            raise QueryShapeError(f"La tabla {spec.table} no admite el filtro {name}") from exc

    conditions: list[tuple[str, list[Any]]] = []
    if filters.date_from is not None:
        conditions.append((f"{column('date')} >= ?", [filters.date_from]))
    if filters.date_to is not None:
        conditions.append((f"{column('date')} <= ?", [filters.date_to]))
    if filters.tariff is not None:
        conditions.append((f"{column('tariff')} = ?", [filters.tariff]))
    if filters.material_id is not None:
        conditions.append((f"{column('material_id')} = ?", [filters.material_id]))
    if filters.category_id is not None:
        conditions.append((f"{column('category_id')} = ?", [filters.category_id]))
    if filters.category is not None:
        conditions.append((f"{column('category')} = ?", [filters.category]))
    if filters.active is not None:
        conditions.append((f"{column('active')} = ?", [filters.active]))
    if filters.search is not None:
        if not spec.search_columns:
            raise QueryShapeError(f"La tabla {spec.table} no admite búsqueda de texto")
        pattern = like_contains(filters.search)
        clauses = [f"LOWER({col}) LIKE LOWER(?) {LIKE_ESCAPE}" for col in spec.search_columns]
        conditions.append(("(" + " OR ".join(clauses) + ")", [pattern] * len(clauses)))
    return conditions


def where_clause(conditions: list[tuple[str, list[Any]]]) -> tuple[str, list[Any]]:
    if not conditions:
        return "", []
    values: list[Any] = []
    for _, condition_values in conditions:
        values.extend(condition_values)
    return " WHERE " + " AND ".join(sql for sql, _ in conditions), values


def build_list_query(spec: TableSpec, filters: ListFilters) -> tuple[str, list[Any]]:
    where_sql, values = where_clause(build_conditions(spec, filters))
    sql = (
        f"SELECT {spec.select} FROM {spec.source}{where_sql}"
        f" ORDER BY {', '.join(spec.order_by)}"
        " LIMIT ? OFFSET ?"
    )
    return sql, [*values, filters.page_size, filters.offset]


def build_count_query(spec: TableSpec, filters: ListFilters) -> tuple[str, list[Any]]:
    where_sql, values = where_clause(build_conditions(spec, filters))
    return f"SELECT COUNT(*) AS total FROM {spec.source}{where_sql}", values


def build_update(
    table: str,
    changes: dict[str, Any],
    row_id: int,
    *,
    touch: str | None = None,
) -> tuple[str, list[Any]] | None:
    """
    Partial UPDATE by primary key.

    `changes` keys must come from a request schema's declared fields, never
    from raw client input. `touch` names a timestamp column bumped to
    CURRENT_TIMESTAMP. Returns None when there is nothing to write.
    """
    assignments = [f"{column} = ?" for column in changes]
    if touch:
        assignments.append(f"{touch} = CURRENT_TIMESTAMP")
    if not assignments:
        return None
    sql = f"UPDATE {table} SET {', '.join(assignments)} WHERE id = ?"
    return sql, [*changes.values(), row_id]


async def fetch_page(db: Any, spec: TableSpec, filters: ListFilters) -> Page:
    list_sql, list_values = build_list_query(spec, filters)
    count_sql, count_values = build_count_query(spec, filters)
    rows = await db.fetch_all(list_sql, *list_values)
    count = await db.fetch_one(count_sql, *count_values)
    return Page(
        rows=rows,
        page=filters.page,
        page_size=filters.page_size,
        total=int(count["total"]) if count else 0,
    )


def date_range_clause(
    column: str,
    date_from: date | None,
    date_to: date | None,
    *,
    keyword: str = "WHERE",
) -> tuple[str, list[Any]]:
    """
    Inclusive date bounds on `column` for aggregate queries.

    `keyword` is "WHERE" for a fresh clause or "AND" to extend one.
    """
    parts: list[str] = []
    values: list[Any] = []
    if date_from is not None:
        parts.append(f"{column} >= ?")
        values.append(date_from)
    if date_to is not None:
        parts.append(f"{column} <= ?")
        values.append(date_to)
    if not parts:
        return "", []
    return f" {keyword} " + " AND ".join(parts), values
