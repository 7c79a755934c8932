"""
Purchase persistence helpers (general and per-material purchases).
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

GENERAL_PURCHASES = TableSpec(
    table="compras_generales",
    alias="cg",
    select=(
        "cg.id, cg.fecha, cg.total_pesos, cg.tipo_precio, cg.cliente,"
        " cg.observaciones, cg.fecha_creacion"
    ),
    order_by=("cg.fecha DESC", "cg.fecha_creacion DESC", "cg.id DESC"),
    columns={"date": "cg.fecha", "tariff": "cg.tipo_precio"},
    search_columns=("cg.cliente",),
)

MATERIAL_PURCHASES = TableSpec(
    table="compras_materiales",
    alias="cm",
    joins="JOIN materiales m ON cm.material_id = m.id",
    select=(
        "cm.id, cm.material_id, cm.fecha, cm.kilos, cm.precio_kilo, cm.total_pesos,"
        " cm.tipo_precio, cm.cliente, cm.observaciones, cm.fecha_creacion,"
        " m.nombre AS material_nombre, m.categoria AS material_categoria"
    ),
    order_by=("cm.fecha DESC", "cm.fecha_creacion DESC", "cm.id DESC"),
    columns={"date": "cm.fecha", "tariff": "cm.tipo_precio", "material_id": "cm.material_id"},
    search_columns=("cm.cliente",),
)

CLIENT_TABLES = {"general": "compras_generales", "material": "compras_materiales"}


async def list_general(db: Database, filters: ListFilters) -> Page:
    return await fetch_page(db, GENERAL_PURCHASES, filters)


async def get_general(db: Database, purchase_id: int) -> dict | None:
    return await db.fetch_one(
        f"SELECT {GENERAL_PURCHASES.select} FROM {GENERAL_PURCHASES.source} WHERE cg.id = ?",
        purchase_id,
    )


async def create_general(db: Database, values: dict[str, Any]) -> int:
    result = await db.insert(
        """
        INSERT INTO compras_generales (fecha, total_pesos, tipo_precio, cliente, observaciones)
        VALUES (?, ?, ?, ?, ?)
        """,
        values["fecha"],
        values["total_pesos"],
        values["tipo_precio"],
        values.get("cliente"),
        values.get("observaciones"),
    )
    if result.last_id is None:
        raise RuntimeError("Failed to create general purchase.")
    return result.last_id


async def update_general(db: Database, purchase_id: int, changes: dict[str, Any]) -> None:
    statement = build_update("compras_generales", changes, purchase_id)
    if statement is not None:
        sql, values = statement
        await db.execute(sql, *values)


async def delete_general(db: Database, purchase_id: int) -> int:
    result = await db.execute("DELETE FROM compras_generales WHERE id = ?", purchase_id)
    return result.rows_changed


async def list_material(db: Database, filters: ListFilters) -> Page:
    return await fetch_page(db, MATERIAL_PURCHASES, filters)


async def get_material_purchase(db: Database, purchase_id: int) -> dict | None:
    return await db.fetch_one(
        f"SELECT {MATERIAL_PURCHASES.select} FROM {MATERIAL_PURCHASES.source} WHERE cm.id = ?",
        purchase_id,
    )


async def create_material_purchase(db: Database, values: dict[str, Any]) -> int:
    result = await db.insert(
        """
        INSERT INTO compras_materiales (
            material_id, fecha, kilos, precio_kilo, total_pesos, tipo_precio, cliente, observaciones
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """,
        values["material_id"],
        values["fecha"],
        values["kilos"],
        values["precio_kilo"],
        values["total_pesos"],
        values["tipo_precio"],
        values.get("cliente"),
        values.get("observaciones"),
    )
    if result.last_id is None:
        raise RuntimeError("Failed to create material purchase.")
    return result.last_id


async def update_material_purchase(db: Database, purchase_id: int, changes: dict[str, Any]) -> None:
    statement = build_update("compras_materiales", changes, purchase_id)
    if statement is not None:
        sql, values = statement
        await db.execute(sql, *values)


async def delete_material_purchase(db: Database, purchase_id: int) -> int:
    result = await db.execute("DELETE FROM compras_materiales WHERE id = ?", purchase_id)
    return result.rows_changed


async def search_clients(db: Database, table: str, term: str, *, limit: int) -> list[str]:
    rows = await db.fetch_all(
        f"""
        SELECT DISTINCT cliente
        FROM {table}
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
            COALESCE(AVG(total_pesos), 0) AS promedio_compra,
            COUNT(CASE WHEN tipo_precio = 'ordinario' THEN 1 END) AS compras_ordinario,
            COUNT(CASE WHEN tipo_precio = 'camion' THEN 1 END) AS compras_camion,
            COUNT(CASE WHEN tipo_precio = 'noche' THEN 1 END) AS compras_noche
        FROM compras_generales{where_sql}
        """,
        *values,
    )
    return row or {}


async def material_stats(db: Database, date_from: date | None, date_to: date | None) -> dict:
    where_sql, values = date_range_clause("fecha", date_from, date_to)
    row = await db.fetch_one(
        f"""
        SELECT
            COUNT(*) AS total_transacciones,
            COALESCE(SUM(total_pesos), 0) AS total_pesos,
            COALESCE(SUM(kilos), 0) AS total_kilos,
            COALESCE(AVG(total_pesos), 0) AS promedio_compra,
            COALESCE(AVG(precio_kilo), 0) AS precio_promedio_kilo
        FROM compras_materiales{where_sql}
        """,
        *values,
    )
    return row or {}


async def top_materials_by_kilos(
    db: Database,
    date_from: date | None,
    date_to: date | None,
    *,
    limit: int = 10,
) -> list[dict]:
    where_sql, values = date_range_clause("cm.fecha", date_from, date_to)
    return await db.fetch_all(
        f"""
        SELECT
            m.id AS material_id,
            m.nombre,
            m.categoria,
            SUM(cm.kilos) AS total_kilos,
            SUM(cm.total_pesos) AS total_pesos,
            AVG(cm.precio_kilo) AS precio_promedio
        FROM compras_materiales cm
        JOIN materiales m ON cm.material_id = m.id{where_sql}
        GROUP BY m.id, m.nombre, m.categoria
        ORDER BY total_kilos DESC, m.id
        LIMIT ?
        """,
        *values,
        limit,
    )
