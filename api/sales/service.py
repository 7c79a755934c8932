"""
Sales business logic.
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
TOP_N = 10


def _clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    text = value.strip()
    return text or None


async def list_sales(db: Database, filters: ListFilters) -> Page:
    return await repository.list_sales(db, filters)


async def get_sale(db: Database, sale_id: int) -> dict:
    row = await repository.get_sale(db, sale_id)
    if row is None:
        raise NotFound("Venta no encontrada")
    return row


async def create_sale(db: Database, payload: schemas.SaleCreate) -> dict:
    await materials_service.require_active_material(db, payload.material_id)

    values = {
        "material_id": payload.material_id,
        "fecha": payload.fecha,
        "kilos": to_weight(payload.kilos),
        "precio_kilo": to_money(payload.precio_kilo),
        "total_pesos": line_total(payload.kilos, payload.precio_kilo),
        "cliente": _clean_text(payload.cliente),
        "observaciones": payload.observaciones,
    }
    sale_id = await repository.create_sale(db, values)
    logger.info("sale_created id=%s material_id=%s total=%s", sale_id, payload.material_id, values["total_pesos"])
    return await get_sale(db, sale_id)


async def update_sale(db: Database, sale_id: int, payload: schemas.SaleUpdate) -> dict:
    current = await get_sale(db, sale_id)
    changes: dict[str, Any] = payload.model_dump(exclude_unset=True)
    for key in ("material_id", "fecha", "kilos", "precio_kilo"):
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

    await repository.update_sale(db, sale_id, changes)
    return await get_sale(db, sale_id)


async def delete_sale(db: Database, sale_id: int) -> dict:
    if await repository.delete_sale(db, sale_id) == 0:
        raise NotFound("Venta no encontrada")
    logger.info("sale_deleted id=%s", sale_id)
    return {"message": "Venta eliminada correctamente", "accion": "eliminado"}


async def search_clients(db: Database, term: str | None) -> list[str]:
    text = (term or "").strip()
    if len(text) < MIN_CLIENT_SEARCH:
        raise ValidationError(f"Parámetro buscar debe tener al menos {MIN_CLIENT_SEARCH} caracteres")
    return await repository.search_clients(db, text, limit=MAX_CLIENTS)


async def summary(db: Database, date_from: date | None, date_to: date | None) -> dict:
    general = await repository.general_stats(db, date_from, date_to)
    materials = await repository.top_materials(db, date_from, date_to, limit=TOP_N)
    clients = await repository.top_clients(db, date_from, date_to, limit=TOP_N)
    return {
        "estadisticas_generales": round_row(
            general,
            money=("total_pesos", "promedio_venta", "precio_promedio_kilo"),
            weight=("total_kilos",),
        ),
        "top_materiales": [
            round_row(row, money=("total_pesos", "precio_promedio"), weight=("total_kilos",)) for row in materials
        ],
        "top_clientes": [round_row(row, money=("total_pesos",), weight=("total_kilos",)) for row in clients],
    }
