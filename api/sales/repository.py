"""
Sales persistence helpers.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from core.db import Database
from core.query import (
    LIKE_ESCAPE,
    ListFilters,
    Page,
    TableSpec,
    build_update,
    date_range_clause,
    fetch_page,
    like_contains,
)

SALES = TableSpec(
    table="ventas",
    alias="v",
    joins="JOIN materiales m ON v.material_id = m.id",
    select=(
        "v.id, v.material_id, v.fecha, v.kilos, v.precio_kilo, v.total_pesos,"
        " v.cliente, v.observaciones, v.fecha_creacion,"
        " m.nombre AS material_nombre, m.categoria AS material_categoria"
    ),
    order_by=("v.fecha DESC", "v.fecha_creacion DESC", "v.id DESC"),
    columns={"date": "v.fecha", "material_id": "v.material_id"},
    search_columns=("v.cliente",),
)


async def list_sales(db: Database, filters: ListFilters) -> Page:
    return await fetch_page(db, SALES, filters)


async def get_sale(db: Database, sale_id: int) -> dict | None:
    return await db.fetch_one(f"SELECT {SALES.select} FROM {SALES.source} WHERE v.id = ?", sale_id)


async def create_sale(db: Database, values: dict[str, Any]) -> int:
    result = await db.insert(
        """
        INSERT INTO ventas (material_id, fecha, kilos, precio_kilo, total_pesos, cliente, observaciones)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        values["material_id"],
        values["fecha"],
        values["kilos"],
        values["precio_kilo"],
        values["total_pesos"],
        values.get("cliente"),
        values.get("observaciones"),
    )
    if result.last_id is None:
        raise RuntimeError("Failed to create sale.")
    return result.last_id


async def update_sale(db: Database, sale_id: int, changes: dict[str, Any]) -> None:
    statement = build_update("ventas", changes, sale_id)
    if statement is not None:
        sql, values = statement
        await db.execute(sql, *values)


async def delete_sale(db: Database, sale_id: int) -> int:
    result = await db.execute("DELETE FROM ventas WHERE id = ?", sale_id)
    return result.rows_changed


async def search_clients(db: Database, term: str, *, limit: int) -> list[str]:
    rows = await db.fetch_all(
        f"""
        SELECT DISTINCT cliente
        FROM ventas
        WHERE cliente IS NOT NULL
          AND cliente <> ''
          AND LOWER(cliente) LIKE LOWER(?) {LIKE_ESCAPE}
        ORDER BY cliente
        LIMIT ?
        """,
        like_contains(term),
        limit,
    )
    return [str(row["cliente"]) for row in rows]


async def general_stats(db: Database, date_from: date | None, date_to: date | None) -> dict:
    where_sql, values = date_range_clause("fecha", date_from, date_to)
    row = await db.fetch_one(
        f"""
        SELECT
            COUNT(*) AS total_transacciones,
            COALESCE(SUM(total_pesos), 0) AS total_pesos,
            COALESCE(SUM(kilos), 0) AS total_kilos,
            COALESCE(AVG(total_pesos), 0) AS promedio_venta,
            COALESCE(AVG(precio_kilo), 0) AS precio_promedio_kilo
        FROM ventas{where_sql}
        """,
        *values,
    )
    return row or {}


async def top_materials(db: Database, date_from: date | None, date_to: date | None, *, limit: int) -> list[dict]:
    where_sql, values = date_range_clause("v.fecha", date_from, date_to)
    return await db.fetch_all(
        f"""
        SELECT
            m.id AS material_id,
            m.nombre,
            m.categoria,
            SUM(v.kilos) AS total_kilos,
            SUM(v.total_pesos) AS total_pesos,
            AVG(v.precio_kilo) AS precio_promedio,
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


async def top_clients(db: Database, date_from: date | None, date_to: date | None, *, limit: int) -> list[dict]:
    range_sql, values = date_range_clause("fecha", date_from, date_to, keyword="AND")
    return await db.fetch_all(
        f"""
        SELECT
            cliente,
            COUNT(*) AS transacciones,
            SUM(total_pesos) AS total_pesos,
            SUM(kilos) AS total_kilos
        FROM ventas
        WHERE cliente IS NOT NULL
          AND cliente <> ''{range_sql}
        GROUP BY cliente
        ORDER BY total_pesos DESC, cliente
        LIMIT ?
        """,
        *values,
        limit,
    )
