"""
Material catalog API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from auth import dependencies as auth_dependencies
from core.config import Settings, get_settings
from core.db import Database, get_db
from core.query import RowId, normalize_list_params
from core.responses import DeleteResult

from . import schemas, service

router = APIRouter()


@router.get("/materiales", response_model=schemas.MaterialPage)
async def list_materials(
    activo: str | None = Query(default=None),
    categoria: str | None = Query(default=None, max_length=50),
    buscar: str | None = Query(default=None, max_length=100),
    pagina: str | None = Query(default=None),
    limite: str | None = Query(default=None),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    filters = normalize_list_params(
        activo=activo,
        categoria=categoria,
        buscar=buscar,
        pagina=pagina,
        limite=limite,
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )
    page = await service.list_materials(db, filters)
    return {"materiales": page.rows, "paginacion": page.meta()}


@router.get("/materiales/categorias/lista")
async def list_categories(
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> list[str]:
    return await service.list_categories(db)


@router.get("/materiales/buscar/lista", response_model=list[schemas.Material])
async def search_materials(
    buscar: str | None = Query(default=None, max_length=100),
    limite: str | None = Query(default=None),
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> list[dict]:
    return await service.search_materials(db, buscar, limite)


@router.put("/materiales/categoria/{categoria}/precios", response_model=schemas.PriceUpdateResult)
async def bulk_update_prices(
    categoria: str,
    payload: schemas.CategoryPriceUpdate,
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.bulk_update_prices(db, categoria, payload)


@router.get("/materiales/{material_id}", response_model=schemas.Material)
async def get_material(
    material_id: RowId,
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.get_material(db, material_id)


@router.post("/materiales", status_code=status.HTTP_201_CREATED, response_model=schemas.Material)
async def create_material(
    payload: schemas.MaterialCreate,
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.create_material(db, payload)


@router.put("/materiales/{material_id}", response_model=schemas.Material)
async def update_material(
    material_id: RowId,
    payload: schemas.MaterialUpdate,
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.update_material(db, material_id, payload)


@router.delete("/materiales/{material_id}", response_model=DeleteResult)
async def delete_material(
    material_id: RowId,
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.delete_material(db, material_id)
