"""
Purchase business logic.

Scope:
- general (non-itemized) purchases
- per-material purchases, whose total is always kilos x price per kilo
- client autocomplete and summary statistics
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from core.db import Database
from core.errors import NotFound, ValidationError
from core.money import line_total, round_row, to_money, to_weight
from core.query import ListFilters, Page
from materials import service as materials_service

from . import repository, schemas

logger = logging.getLogger(__name__)

MIN_CLIENT_SEARCH = 2
MAX_CLIENTS = 10
TOP_MATERIALS = 10


def _clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    text = value.strip()
    return text or None


async def list_general(db: Database, filters: ListFilters) -> Page:
    return await repository.list_general(db, filters)


async def get_general(db: Database, purchase_id: int) -> dict:
    row = await repository.get_general(db, purchase_id)
    if row is None:
        raise NotFound("Compra no encontrada")
    return row


async def create_general(db: Database, payload: schemas.GeneralPurchaseCreate) -> dict:
    values = {
        "fecha": payload.fecha,
        "total_pesos": to_money(payload.total_pesos),
        "tipo_precio": payload.tipo_precio,
        "cliente": _clean_text(payload.cliente),
        "observaciones": payload.observaciones,
    }
    purchase_id = await repository.create_general(db, values)
    logger.info("general_purchase_created id=%s total=%s", purchase_id, values["total_pesos"])
    return await get_general(db, purchase_id)


async def update_general(db: Database, purchase_id: int, payload: schemas.GeneralPurchaseUpdate) -> dict:
    await get_general(db, purchase_id)
    changes = payload.model_dump(exclude_unset=True)
    for key in ("fecha", "total_pesos", "tipo_precio"):
        if key in changes and changes[key] is None:
            raise ValidationError(f"{key} no puede ser nulo")
    if "total_pesos" in changes:
        changes["total_pesos"] = to_money(changes["total_pesos"])
    if "cliente" in changes:
        changes["cliente"] = _clean_text(changes["cliente"])

    await repository.update_general(db, purchase_id, changes)
    return await get_general(db, purchase_id)


async def delete_general(db: Database, purchase_id: int) -> dict:
    if await repository.delete_general(db, purchase_id) == 0:
        raise NotFound("Compra no encontrada")
    logger.info("general_purchase_deleted id=%s", purchase_id)
    return {"message": "Compra eliminada correctamente", "accion": "eliminado"}


async def list_material(db: Database, filters: ListFilters) -> Page:
    return await repository.list_material(db, filters)


async def get_material_purchase(db: Database, purchase_id: int) -> dict:
    row = await repository.get_material_purchase(db, purchase_id)
    if row is None:
        raise NotFound("Compra no encontrada")
    return row


async def create_material_purchase(db: Database, payload: schemas.MaterialPurchaseCreate) -> dict:
    await materials_service.require_active_material(db, payload.material_id)

    values = {
        "material_id": payload.material_id,
        "fecha": payload.fecha,
        "kilos": to_weight(payload.kilos),
        "precio_kilo": to_money(payload.precio_kilo),
        "total_pesos": line_total(payload.kilos, payload.precio_kilo),
        "tipo_precio": payload.tipo_precio,
        "cliente": _clean_text(payload.cliente),
        "observaciones": payload.observaciones,
    }
    purchase_id = await repository.create_material_purchase(db, values)
    logger.info(
        "material_purchase_created id=%s material_id=%s total=%s",
        purchase_id,
        payload.material_id,
        values["total_pesos"],
    )
    return await get_material_purchase(db, purchase_id)


async def update_material_purchase(
    db: Database,
    purchase_id: int,
    payload: schemas.MaterialPurchaseUpdate,
) -> dict:
    current = await get_material_purchase(db, purchase_id)
    changes: dict[str, Any] = payload.model_dump(exclude_unset=True)
    for key in ("material_id", "fecha", "kilos", "precio_kilo", "tipo_precio"):
        if key in changes and changes[key] is None:
            raise ValidationError(f"{key} no puede ser nulo")

    if "material_id" in changes:
        await materials_service.require_active_material(db, changes["material_id"])
    if "cliente" in changes:
        changes["cliente"] = _clean_text(changes["cliente"])

    if "kilos" in changes or "precio_kilo" in changes:
        kilos = changes.get("kilos", current["kilos"])
        price = changes.get("precio_kilo", current["precio_kilo"])
        if "kilos" in changes:
            changes["kilos"] = to_weight(kilos)
        if "precio_kilo" in changes:
            changes["precio_kilo"] = to_money(price)
        changes["total_pesos"] = line_total(kilos, price)

    await repository.update_material_purchase(db, purchase_id, changes)
    return await get_material_purchase(db, purchase_id)


async def delete_material_purchase(db: Database, purchase_id: int) -> dict:
    if await repository.delete_material_purchase(db, purchase_id) == 0:
        raise NotFound("Compra no encontrada")
    logger.info("material_purchase_deleted id=%s", purchase_id)
    return {"message": "Compra eliminada correctamente", "accion": "eliminado"}


async def search_clients(db: Database, term: str | None, tipo: str | None) -> list[str]:
    text = (term or "").strip()
    if len(text) < MIN_CLIENT_SEARCH:
        raise ValidationError(f"Parámetro buscar debe tener al menos {MIN_CLIENT_SEARCH} caracteres")

    kind = _clean_text(tipo)
    if kind is not None and kind not in repository.CLIENT_TABLES:
        raise ValidationError('Tipo debe ser "general" o "material"')

    tables = [repository.CLIENT_TABLES[kind]] if kind else list(repository.CLIENT_TABLES.values())
    names: set[str] = set()
    for table in tables:
        names.update(await repository.search_clients(db, table, text, limit=MAX_CLIENTS))
    return sorted(names)[:MAX_CLIENTS]


async def summary(db: Database, date_from: date | None, date_to: date | None) -> dict:
    general = round_row(
        await repository.general_stats(db, date_from, date_to),
        money=("total_pesos", "promedio_compra"),
    )
    material = round_row(
        await repository.material_stats(db, date_from, date_to),
        money=("total_pesos", "promedio_compra", "precio_promedio_kilo"),
        weight=("total_kilos",),
    )
    top = [
        round_row(row, money=("total_pesos", "precio_promedio"), weight=("total_kilos",))
        for row in await repository.top_materials_by_kilos(db, date_from, date_to, limit=TOP_MATERIALS)
    ]
    return {
        "compras_generales": general,
        "compras_materiales": material,
        "top_materiales": top,
        "total_compras": float(to_money(general.get("total_pesos", 0) + material.get("total_pesos", 0))),
    }
