"""
Material catalog business logic.
"""

from __future__ import annotations

import logging

from core.db import Database
from core.errors import ConstraintViolation, NotFound, ValidationError
from core.money import to_money
from core.query import ListFilters, Page, parse_positive_int

from . import repository, schemas

logger = logging.getLogger(__name__)

MIN_SEARCH_LENGTH = 2
DEFAULT_SEARCH_LIMIT = 10
MAX_SEARCH_LIMIT = 50


def _duplicate_name(message: str, exc: ConstraintViolation | None = None) -> ConstraintViolation:
    constraint = exc.constraint if exc is not None else "uq_materiales_nombre_lower"
    return ConstraintViolation(message, constraint=constraint, kind="unique")


async def list_materials(db: Database, filters: ListFilters) -> Page:
    return await repository.list_materials(db, filters)


async def get_material(db: Database, material_id: int) -> dict:
    row = await repository.get_material(db, material_id)
    if row is None:
        raise NotFound("Material no encontrado")
    return row


async def require_active_material(db: Database, material_id: int) -> dict:
    row = await repository.get_active_material(db, material_id)
    if row is None:
        raise NotFound("Material no encontrado o inactivo")
    return row


async def create_material(db: Database, payload: schemas.MaterialCreate) -> dict:
    nombre = payload.nombre.strip()
    categoria = payload.categoria.strip()
    if not nombre or not categoria:
        raise ValidationError("Nombre y categoría son requeridos")

    if await repository.find_by_name(db, nombre) is not None:
        raise _duplicate_name("Ya existe un material con ese nombre")

    values = {
        "nombre": nombre,
        "categoria": categoria,
        "precio_ordinario": to_money(payload.precio_ordinario),
        "precio_camion": to_money(payload.precio_camion),
        "precio_noche": to_money(payload.precio_noche),
    }
    try:
        material_id = await repository.create_material(db, values)
    except ConstraintViolation as exc:
        # Lost a race with a concurrent insert of the same name.
        if exc.kind == "unique":
            raise _duplicate_name("Ya existe un material con ese nombre", exc) from exc
        raise

    logger.info("material_created id=%s nombre=%r", material_id, nombre)
    return await get_material(db, material_id)


async def update_material(db: Database, material_id: int, payload: schemas.MaterialUpdate) -> dict:
    current = await get_material(db, material_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)

    for key in ("nombre", "categoria"):
        if key in changes:
            changes[key] = changes[key].strip()
            if not changes[key]:
                raise ValidationError("Nombre y categoría no pueden estar vacíos")
    for key in ("precio_ordinario", "precio_camion", "precio_noche"):
        if key in changes:
            changes[key] = to_money(changes[key])

    nombre = changes.get("nombre")
    if nombre is not None and nombre != current["nombre"]:
        if await repository.find_by_name(db, nombre, exclude_id=material_id) is not None:
            raise _duplicate_name("Ya existe otro material con ese nombre")

    try:
        await repository.update_material(db, material_id, changes)
    except ConstraintViolation as exc:
        if exc.kind == "unique":
            raise _duplicate_name("Ya existe otro material con ese nombre", exc) from exc
        raise
    return await get_material(db, material_id)


async def delete_material(db: Database, material_id: int) -> dict:
    """
    Soft-delete a material that purchases or sales still reference;
    hard-delete it otherwise.
    """
    await get_material(db, material_id)

    if await repository.count_references(db, material_id) > 0:
        await repository.deactivate_material(db, material_id)
        logger.info("material_deactivated id=%s", material_id)
        return {
            "message": "Material desactivado (tiene transacciones asociadas)",
            "accion": "desactivado",
        }

    await repository.delete_material(db, material_id)
    logger.info("material_deleted id=%s", material_id)
    return {"message": "Material eliminado completamente", "accion": "eliminado"}


async def list_categories(db: Database) -> list[str]:
    return await repository.list_categories(db)


async def search_materials(db: Database, term: str | None, limit: str | None) -> list[dict]:
    text = (term or "").strip()
    if len(text) < MIN_SEARCH_LENGTH:
        raise ValidationError(f"El término de búsqueda debe tener al menos {MIN_SEARCH_LENGTH} caracteres")
    size = parse_positive_int(limit, field_name="limite") or DEFAULT_SEARCH_LIMIT
    return await repository.search_materials(db, text, limit=min(size, MAX_SEARCH_LIMIT))


async def bulk_update_prices(db: Database, categoria: str, payload: schemas.CategoryPriceUpdate) -> dict:
    increments = {
        key: value
        for key, value in payload.model_dump(exclude={"tipo_incremento"}).items()
        if value is not None
    }
    if not increments:
        raise ValidationError("Debes indicar al menos un incremento de precio")

    percentage = payload.tipo_incremento == "porcentaje"
    if percentage and any(value <= -100 for value in increments.values()):
        raise ValidationError("El porcentaje de incremento debe ser mayor a -100")

    updated = await repository.bulk_update_prices(db, categoria, increments, percentage=percentage)
    logger.info(
        "material_prices_updated categoria=%r tipo=%s count=%s",
        categoria,
        payload.tipo_incremento,
        updated,
    )
    return {
        "message": f"Precios actualizados para {updated} materiales en la categoría {categoria}",
        "materialesActualizados": updated,
    }
