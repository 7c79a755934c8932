"""
Report queries.

Every aggregate here is bounded by an inclusive date range and written once
against the `Dialect` interface: period keys and weekday numbers come from
`db.dialect.date_fn()`, so the same statement runs on SQLite and Postgres.
Sums are wrapped in COALESCE; empty ranges yield zeros, never NULL.
"""

from __future__ import annotations

from datetime import date

from core.db import Database
from core.query import date_range_clause

# Tables whose amount column feeds the headline totals.
AMOUNT_COLUMNS = {
    "compras_generales": "total_pesos",
    "compras_materiales": "total_pesos",
    "ventas": "total_pesos",
    "gastos": "valor",
}


def _purchases_union(date_from: date, date_to: date) -> tuple[str, list]:
    general_sql, general_values = date_range_clause("fecha", date_from, date_to)
    material_sql, material_values = date_range_clause("fecha", date_from, date_to)
    sql = (
        f"(SELECT fecha, total_pesos FROM compras_generales{general_sql}"
        f" UNION ALL SELECT fecha, total_pesos FROM compras_materiales{material_sql}) AS compras"
    )
    return sql, [*general_values, *material_values]


async def sum_amount(db: Database, table: str, date_from: date, date_to: date) -> float:
    column = AMOUNT_COLUMNS[table]
    where_sql, values = date_range_clause("fecha", date_from, date_to)
    row = await db.fetch_one(f"SELECT COALESCE(SUM({column}), 0) AS total FROM {table}{where_sql}", *values)
    return row["total"] if row else 0


async def sales_totals(db: Database, date_from: date, date_to: date) -> dict:
    where_sql, values = date_range_clause("fecha", date_from, date_to)
    row = await db.fetch_one(
        f"""
        SELECT
            COALESCE(SUM(total_pesos), 0) AS total,
            COALESCE(SUM(kilos), 0) AS kilos
        FROM ventas{where_sql}
        """,
        *values,
    )
    return row or {"total": 0, "kilos": 0}


async def top_sold_materials(db: Database, date_from: date, date_to: date, *, limit: int) -> list[dict]:
    where_sql, values = date_range_clause("v.fecha", date_from, date_to)
    return await db.fetch_all(
        f"""
        SELECT
            m.id AS material_id,
            m.nombre,
            m.categoria,
            SUM(v.kilos) AS total_kilos,
            SUM(v.total_pesos) AS total_pesos,
            COUNT(*) AS transacciones
        FROM ventas v
        JOIN materiales m ON v.material_id = m.id{where_sql}
        GROUP BY m.id, m.nombre, m.categoria
        ORDER BY total_pesos DESC, m.id
        LIMIT ?
        """,
        *values,
        limit,
    )


async def daily_sales(db: Database, date_from: date, date_to: date) -> list[dict]:
    where_sql, values = date_range_clause("fecha", date_from, date_to)
    return await db.fetch_all(
        f"""
        SELECT fecha, COALESCE(SUM(total_pesos), 0) AS ventas_dia
        FROM ventas{where_sql}
        GROUP BY fecha
        ORDER BY fecha
        """,
        *values,
    )


async def purchases_by_period(db: Database, period_fn: str, date_from: date, date_to: date) -> list[dict]:
    period = db.dialect.date_fn(period_fn, "fecha")
    source, values = _purchases_union(date_from, date_to)
    return await db.fetch_all(
        f"""
        SELECT {period} AS periodo, COALESCE(SUM(total_pesos), 0) AS total_compras
        FROM {source}
        GROUP BY {period}
        ORDER BY {period}
        """,
        *values,
    )


async def sales_by_period(db: Database, period_fn: str, date_from: date, date_to: date) -> list[dict]:
    period = db.dialect.date_fn(period_fn, "fecha")
    where_sql, values = date_range_clause("fecha", date_from, date_to)
    return await db.fetch_all(
        f"""
        SELECT
            {period} AS periodo,
            COALESCE(SUM(total_pesos), 0) AS total_ventas,
            COALESCE(SUM(kilos), 0) AS total_kilos
        FROM ventas{where_sql}
        GROUP BY {period}
        ORDER BY {period}
        """,
        *values,
    )


async def expenses_by_period(db: Database, period_fn: str, date_from: date, date_to: date) -> list[dict]:
    period = db.dialect.date_fn(period_fn, "fecha")
    where_sql, values = date_range_clause("fecha", date_from, date_to)
    return await db.fetch_all(
        f"""
        SELECT {period} AS periodo, COALESCE(SUM(valor), 0) AS total_gastos
        FROM gastos{where_sql}
        GROUP BY {period}
        ORDER BY {period}
        """,
        *values,
    )


async def sales_by_material(
    db: Database,
    date_from: date,
    date_to: date,
    categoria: str | None,
) -> list[dict]:
    where_sql, values = date_range_clause("v.fecha", date_from, date_to)
    if categoria:
        where_sql += " AND m.categoria = ?"
        values.append(categoria)
    return await db.fetch_all(
        f"""
        SELECT
            m.id AS material_id,
            m.nombre,
            m.categoria,
            SUM(v.kilos) AS total_kilos_vendidos,
            SUM(v.total_pesos) AS total_ventas,
            AVG(v.precio_kilo) AS precio_promedio_venta,
            COUNT(*) AS transacciones_venta,
            MAX(v.precio_kilo) AS precio_maximo,
            MIN(v.precio_kilo) AS precio_minimo
        FROM ventas v
        JOIN materiales m ON v.material_id = m.id{where_sql}
        GROUP BY m.id, m.nombre, m.categoria
        ORDER BY total_ventas DESC, m.id
        """,
        *values,
    )


async def purchases_by_material(
    db: Database,
    date_from: date,
    date_to: date,
    categoria: str | None,
) -> list[dict]:
    where_sql, values = date_range_clause("cm.fecha", date_from, date_to)
    if categoria:
        where_sql += " AND m.categoria = ?"
        values.append(categoria)
    return await db.fetch_all(
        f"""
        SELECT
            m.id AS material_id,
            SUM(cm.kilos) AS total_kilos_comprados,
            SUM(cm.total_pesos) AS total_compras,
            AVG(cm.precio_kilo) AS precio_promedio_compra,
            COUNT(*) AS transacciones_compra
        FROM compras_materiales cm
        JOIN materiales m ON cm.material_id = m.id{where_sql}
        GROUP BY m.id
        """,
        *values,
    )


async def general_purchase_averages(db: Database, date_from: date, date_to: date) -> dict:
    where_sql, values = date_range_clause("fecha", date_from, date_to)
    row = await db.fetch_one(
        f"""
        SELECT
            COUNT(DISTINCT fecha) AS dias_con_compras,
            COALESCE(SUM(total_pesos), 0) AS total_compras,
            COALESCE(AVG(total_pesos), 0) AS promedio_por_transaccion,
            COUNT(*) AS total_transacciones
        FROM compras_generales{where_sql}
        """,
        *values,
    )
    return row or {}


async def material_purchase_averages(db: Database, date_from: date, date_to: date) -> dict:
    where_sql, values = date_range_clause("fecha", date_from, date_to)
    row = await db.fetch_one(
        f"""
        SELECT
            COUNT(DISTINCT fecha) AS dias_con_compras,
            COALESCE(SUM(total_pesos), 0) AS total_compras,
            COALESCE(SUM(kilos), 0) AS total_kilos,
            COALESCE(AVG(total_pesos), 0) AS promedio_por_transaccion,
            COALESCE(AVG(precio_kilo), 0) AS precio_promedio_kilo,
            COUNT(*) AS total_transacciones
        FROM compras_materiales{where_sql}
        """,
        *values,
    )
    return row or {}


async def purchases_by_weekday(db: Database, date_from: date, date_to: date) -> list[dict]:
    weekday = db.dialect.date_fn("weekday", "fecha")
    source, values = _purchases_union(date_from, date_to)
    return await db.fetch_all(
        f"""
        SELECT
            {weekday} AS dia_numero,
            COUNT(*) AS transacciones,
            COALESCE(SUM(total_pesos), 0) AS total_compras,
            COALESCE(AVG(total_pesos), 0) AS promedio_dia
        FROM {source}
        GROUP BY {weekday}
        ORDER BY {weekday}
        """,
        *values,
    )


BACKUP_QUERIES = {
    "materiales": (
        "SELECT * FROM materiales ORDER BY categoria, nombre, id",
        None,
    ),
    "compras_generales": (
        "SELECT * FROM compras_generales{where} ORDER BY fecha DESC, id DESC",
        "fecha",
    ),
    "compras_materiales": (
        "SELECT cm.*, m.nombre AS material_nombre FROM compras_materiales cm"
        " JOIN materiales m ON cm.material_id = m.id{where} ORDER BY cm.fecha DESC, cm.id DESC",
        "cm.fecha",
    ),
    "ventas": (
        "SELECT v.*, m.nombre AS material_nombre FROM ventas v"
        " JOIN materiales m ON v.material_id = m.id{where} ORDER BY v.fecha DESC, v.id DESC",
        "v.fecha",
    ),
    "gastos": (
        "SELECT g.*, c.nombre AS categoria_nombre FROM gastos g"
        " JOIN categorias_gastos c ON g.categoria_id = c.id{where} ORDER BY g.fecha DESC, g.id DESC",
        "g.fecha",
    ),
}


async def export_table(db: Database, table: str, date_from: date | None, date_to: date | None) -> list[dict]:
    template, date_column = BACKUP_QUERIES[table]
    if date_column is None:
        return await db.fetch_all(template)
    where_sql, values = date_range_clause(date_column, date_from, date_to)
    return await db.fetch_all(template.format(where=where_sql), *values)
