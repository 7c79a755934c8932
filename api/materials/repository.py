"""
Material catalog persistence helpers.
"""

from __future__ import annotations

from typing import Any

from core.db import Database
from core.query import (
    LIKE_ESCAPE,
    ListFilters,
    Page,
    TableSpec,
    build_update,
    fetch_page,
    like_contains,
    like_prefix,
)

_COLUMNS = (
    "m.id, m.nombre, m.categoria, m.precio_ordinario, m.precio_camion, m.precio_noche,"
    " m.activo, m.fecha_creacion, m.fecha_actualizacion"
)

MATERIALS = TableSpec(
    table="materiales",
    alias="m",
    select=_COLUMNS,
    order_by=("m.categoria", "m.nombre", "m.id"),
    columns={"category": "m.categoria", "active": "m.activo"},
    search_columns=("m.nombre",),
)

PRICE_COLUMNS = {
    "precio_ordinario_incremento": "precio_ordinario",
    "precio_camion_incremento": "precio_camion",
    "precio_noche_incremento": "precio_noche",
}


async def list_materials(db: Database, filters: ListFilters) -> Page:
    return await fetch_page(db, MATERIALS, filters)


async def get_material(db: Database, material_id: int) -> dict | None:
    return await db.fetch_one(f"SELECT {_COLUMNS} FROM materiales m WHERE m.id = ?", material_id)


async def get_active_material(db: Database, material_id: int) -> dict | None:
    return await db.fetch_one(
        f"SELECT {_COLUMNS} FROM materiales m WHERE m.id = ? AND m.activo = ?",
        material_id,
        True,
    )


async def find_by_name(db: Database, nombre: str, *, exclude_id: int | None = None) -> dict | None:
    if exclude_id is None:
        return await db.fetch_one("SELECT id FROM materiales WHERE LOWER(nombre) = LOWER(?)", nombre)
    return await db.fetch_one(
        "SELECT id FROM materiales WHERE LOWER(nombre) = LOWER(?) AND id <> ?",
        nombre,
        exclude_id,
    )


async def create_material(db: Database, values: dict[str, Any]) -> int:
    result = await db.insert(
        """
        INSERT INTO materiales (nombre, categoria, precio_ordinario, precio_camion, precio_noche)
        VALUES (?, ?, ?, ?, ?)
        """,
        values["nombre"],
        values["categoria"],
        values["precio_ordinario"],
        values["precio_camion"],
        values["precio_noche"],
    )
    if result.last_id is None:
        raise RuntimeError("Failed to create material.")
    return result.last_id


async def update_material(db: Database, material_id: int, changes: dict[str, Any]) -> None:
    statement = build_update("materiales", changes, material_id, touch="fecha_actualizacion")
    if statement is not None:
        sql, values = statement
        await db.execute(sql, *values)


async def count_references(db: Database, material_id: int) -> int:
    row = await db.fetch_one(
        """
        SELECT
            (SELECT COUNT(*) FROM compras_materiales WHERE material_id = ?)
            + (SELECT COUNT(*) FROM ventas WHERE material_id = ?) AS total_referencias
        """,
        material_id,
        material_id,
    )
    return int(row["total_referencias"]) if row else 0


async def deactivate_material(db: Database, material_id: int) -> None:
    await db.execute(
        "UPDATE materiales SET activo = ?, fecha_actualizacion = CURRENT_TIMESTAMP WHERE id = ?",
        False,
        material_id,
    )


async def delete_material(db: Database, material_id: int) -> int:
    result = await db.execute("DELETE FROM materiales WHERE id = ?", material_id)
    return result.rows_changed


async def list_categories(db: Database) -> list[str]:
    rows = await db.fetch_all(
        "SELECT DISTINCT categoria FROM materiales WHERE activo = ? ORDER BY categoria",
        True,
    )
    return [str(row["categoria"]) for row in rows]


async def search_materials(db: Database, term: str, *, limit: int) -> list[dict]:
    contains = like_contains(term)
    return await db.fetch_all(
        f"""
        SELECT {_COLUMNS}
        FROM materiales m
        WHERE m.activo = ?
          AND (LOWER(m.nombre) LIKE LOWER(?) {LIKE_ESCAPE} OR LOWER(m.categoria) LIKE LOWER(?) {LIKE_ESCAPE})
        ORDER BY
            CASE WHEN LOWER(m.nombre) LIKE LOWER(?) {LIKE_ESCAPE} THEN 1 ELSE 2 END,
            m.nombre,
            m.id
        LIMIT ?
        """,
        True,
        contains,
        contains,
        like_prefix(term),
        limit,
    )


async def bulk_update_prices(
    db: Database,
    categoria: str,
    increments: dict[str, Any],
    *,
    percentage: bool,
) -> int:
    """
    Apply per-tariff increments to the active materials of one category.

    `increments` maps a key of PRICE_COLUMNS to a percentage or fixed amount.
    """
    assignments: list[str] = []
    values: list[Any] = []
    for key, amount in increments.items():
        column = PRICE_COLUMNS[key]
        if percentage:
            assignments.append(f"{column} = ROUND({column} * ?, 2)")
            values.append(1 + amount / 100)
        else:
            assignments.append(f"{column} = ROUND({column} + ?, 2)")
            values.append(amount)
    assignments.append("fecha_actualizacion = CURRENT_TIMESTAMP")

    result = await db.execute(
        f"UPDATE materiales SET {', '.join(assignments)} WHERE categoria = ? AND activo = ?",
        *values,
        categoria,
        True,
    )
    return result.rows_changed
