"""
Expense persistence helpers.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from core.db import Database
from core.query import ListFilters, Page, TableSpec, build_update, date_range_clause, fetch_page

CATEGORIES = TableSpec(
    table="categorias_gastos",
    alias="c",
    select="c.id, c.nombre, c.descripcion, c.activo",
    order_by=("c.nombre", "c.id"),
    columns={"active": "c.activo"},
    search_columns=("c.nombre",),
)

EXPENSES = TableSpec(
    table="gastos",
    alias="g",
    joins="JOIN categorias_gastos c ON g.categoria_id = c.id",
    select=(
        "g.id, g.categoria_id, g.fecha, g.concepto, g.valor, g.observaciones, g.fecha_creacion,"
        " c.nombre AS categoria_nombre, c.descripcion AS categoria_descripcion"
    ),
    order_by=("g.fecha DESC", "g.fecha_creacion DESC", "g.id DESC"),
    columns={"date": "g.fecha", "category_id": "g.categoria_id"},
    search_columns=("g.concepto",),
)


async def list_categories(db: Database, filters: ListFilters) -> Page:
    return await fetch_page(db, CATEGORIES, filters)


async def get_category(db: Database, category_id: int) -> dict | None:
    return await db.fetch_one(
        f"SELECT {CATEGORIES.select} FROM {CATEGORIES.source} WHERE c.id = ?",
        category_id,
    )


async def get_active_category(db: Database, category_id: int) -> dict | None:
    return await db.fetch_one(
        f"SELECT {CATEGORIES.select} FROM {CATEGORIES.source} WHERE c.id = ? AND c.activo = ?",
        category_id,
        True,
    )


async def create_category(db: Database, nombre: str, descripcion: str | None) -> int:
    result = await db.insert(
        "INSERT INTO categorias_gastos (nombre, descripcion) VALUES (?, ?)",
        nombre,
        descripcion,
    )
    if result.last_id is None:
        raise RuntimeError("Failed to create expense category.")
    return result.last_id


async def update_category(db: Database, category_id: int, changes: dict[str, Any]) -> None:
    statement = build_update("categorias_gastos", changes, category_id)
    if statement is not None:
        sql, values = statement
        await db.execute(sql, *values)


async def count_category_references(db: Database, category_id: int) -> int:
    row = await db.fetch_one("SELECT COUNT(*) AS total FROM gastos WHERE categoria_id = ?", category_id)
    return int(row["total"]) if row else 0


async def deactivate_category(db: Database, category_id: int) -> None:
    await db.execute("UPDATE categorias_gastos SET activo = ? WHERE id = ?", False, category_id)


async def delete_category(db: Database, category_id: int) -> int:
    result = await db.execute("DELETE FROM categorias_gastos WHERE id = ?", category_id)
    return result.rows_changed


async def list_expenses(db: Database, filters: ListFilters) -> Page:
    return await fetch_page(db, EXPENSES, filters)


async def get_expense(db: Database, expense_id: int) -> dict | None:
    return await db.fetch_one(f"SELECT {EXPENSES.select} FROM {EXPENSES.source} WHERE g.id = ?", expense_id)


async def create_expense(db: Database, values: dict[str, Any]) -> int:
    result = await db.insert(
        """
        INSERT INTO gastos (categoria_id, fecha, concepto, valor, observaciones)
        VALUES (?, ?, ?, ?, ?)
        """,
        values["categoria_id"],
        values["fecha"],
        values["concepto"],
        values["valor"],
        values.get("observaciones"),
    )
    if result.last_id is None:
        raise RuntimeError("Failed to create expense.")
    return result.last_id


async def update_expense(db: Database, expense_id: int, changes: dict[str, Any]) -> None:
    statement = build_update("gastos", changes, expense_id)
    if statement is not None:
        sql, values = statement
        await db.execute(sql, *values)


async def delete_expense(db: Database, expense_id: int) -> int:
    result = await db.execute("DELETE FROM gastos WHERE id = ?", expense_id)
    return result.rows_changed


async def general_stats(db: Database, date_from: date | None, date_to: date | None) -> dict:
    where_sql, values = date_range_clause("fecha", date_from, date_to)
    row = await db.fetch_one(
        f"""
        SELECT
            COUNT(*) AS total_transacciones,
            COALESCE(SUM(valor), 0) AS total_gastos,
            COALESCE(AVG(valor), 0) AS promedio_gasto
        FROM gastos{where_sql}
        """,
        *values,
    )
    return row or {}


async def totals_by_category(db: Database, date_from: date | None, date_to: date | None) -> list[dict]:
    where_sql, values = date_range_clause("g.fecha", date_from, date_to)
    return await db.fetch_all(
        f"""
        SELECT
            c.id AS categoria_id,
            c.nombre AS categoria,
            c.descripcion,
            SUM(g.valor) AS total_gastos,
            COUNT(*) AS transacciones,
            AVG(g.valor) AS promedio
        FROM gastos g
        JOIN categorias_gastos c ON g.categoria_id = c.id{where_sql}
        GROUP BY c.id, c.nombre, c.descripcion
        ORDER BY total_gastos DESC, c.id
        """,
        *values,
    )
