"""
Expense business logic.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from core.db import Database
from core.errors import ConstraintViolation, NotFound, ValidationError
from core.money import round_row, to_money
from core.query import ListFilters, Page

from . import repository, schemas

logger = logging.getLogger(__name__)


async def list_categories(db: Database, filters: ListFilters) -> Page:
    return await repository.list_categories(db, filters)


async def get_category(db: Database, category_id: int) -> dict:
    row = await repository.get_category(db, category_id)
    if row is None:
        raise NotFound("Categoría no encontrada")
    return row


async def create_category(db: Database, payload: schemas.CategoryCreate) -> dict:
    nombre = payload.nombre.strip()
    if not nombre:
        raise ValidationError("El nombre es requerido")
    try:
        category_id = await repository.create_category(db, nombre, payload.descripcion)
    except ConstraintViolation as exc:
        if exc.kind == "unique":
            raise ConstraintViolation(
                "Ya existe una categoría con ese nombre",
                constraint=exc.constraint,
                kind="unique",
            ) from exc
        raise
    logger.info("expense_category_created id=%s nombre=%r", category_id, nombre)
    return await get_category(db, category_id)


async def update_category(db: Database, category_id: int, payload: schemas.CategoryUpdate) -> dict:
    await get_category(db, category_id)
    changes = payload.model_dump(exclude_unset=True)
    if "nombre" in changes:
        changes["nombre"] = (changes["nombre"] or "").strip()
        if not changes["nombre"]:
            raise ValidationError("El nombre es requerido")
    if "activo" in changes and changes["activo"] is None:
        del changes["activo"]

    try:
        await repository.update_category(db, category_id, changes)
    except ConstraintViolation as exc:
        if exc.kind == "unique":
            raise ConstraintViolation(
                "Ya existe una categoría con ese nombre",
                constraint=exc.constraint,
                kind="unique",
            ) from exc
        raise
    return await get_category(db, category_id)


async def delete_category(db: Database, category_id: int) -> dict:
    await get_category(db, category_id)
    if await repository.count_category_references(db, category_id) > 0:
        await repository.deactivate_category(db, category_id)
        logger.info("expense_category_deactivated id=%s", category_id)
        return {"message": "Categoría desactivada (tiene gastos asociados)", "accion": "desactivado"}

    await repository.delete_category(db, category_id)
    logger.info("expense_category_deleted id=%s", category_id)
    return {"message": "Categoría eliminada completamente", "accion": "eliminado"}


async def _require_active_category(db: Database, category_id: int) -> None:
    if await repository.get_active_category(db, category_id) is None:
        raise NotFound("Categoría no encontrada o inactiva")


async def list_expenses(db: Database, filters: ListFilters) -> Page:
    return await repository.list_expenses(db, filters)


async def get_expense(db: Database, expense_id: int) -> dict:
    row = await repository.get_expense(db, expense_id)
    if row is None:
        raise NotFound("Gasto no encontrado")
    return row


async def create_expense(db: Database, payload: schemas.ExpenseCreate) -> dict:
    await _require_active_category(db, payload.categoria_id)
    concepto = payload.concepto.strip()
    if not concepto:
        raise ValidationError("Categoría, fecha, concepto y valor son requeridos")

    values = {
        "categoria_id": payload.categoria_id,
        "fecha": payload.fecha,
        "concepto": concepto,
        "valor": to_money(payload.valor),
        "observaciones": payload.observaciones,
    }
    expense_id = await repository.create_expense(db, values)
    logger.info("expense_created id=%s categoria_id=%s valor=%s", expense_id, payload.categoria_id, values["valor"])
    return await get_expense(db, expense_id)


async def update_expense(db: Database, expense_id: int, payload: schemas.ExpenseUpdate) -> dict:
    await get_expense(db, expense_id)
    changes: dict[str, Any] = payload.model_dump(exclude_unset=True)
    for key in ("categoria_id", "fecha", "concepto", "valor"):
        if key in changes and changes[key] is None:
            raise ValidationError(f"{key} no puede ser nulo")

    if "categoria_id" in changes:
        await _require_active_category(db, changes["categoria_id"])
    if "concepto" in changes:
        changes["concepto"] = changes["concepto"].strip()
        if not changes["concepto"]:
            raise ValidationError("El concepto es requerido")
    if "valor" in changes:
        changes["valor"] = to_money(changes["valor"])

    await repository.update_expense(db, expense_id, changes)
    return await get_expense(db, expense_id)


async def delete_expense(db: Database, expense_id: int) -> dict:
    if await repository.delete_expense(db, expense_id) == 0:
        raise NotFound("Gasto no encontrado")
    logger.info("expense_deleted id=%s", expense_id)
    return {"message": "Gasto eliminado correctamente", "accion": "eliminado"}


async def summary(db: Database, date_from: date | None, date_to: date | None) -> dict:
    general = await repository.general_stats(db, date_from, date_to)
    by_category = await repository.totals_by_category(db, date_from, date_to)
    return {
        "estadisticas_generales": round_row(general, money=("total_gastos", "promedio_gasto")),
        "gastos_por_categoria": [round_row(row, money=("total_gastos", "promedio")) for row in by_category],
    }
