"""
Purchase API endpoints.
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


@router.get("/compras/clientes/lista")
async def search_clients(
    buscar: str | None = Query(default=None, max_length=100),
    tipo: str | None = Query(default=None),
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> list[str]:
    return await service.search_clients(db, buscar, tipo)


@router.get("/compras/estadisticas/resumen")
async def purchase_summary(
    fecha_inicio: str | None = Query(default=None),
    fecha_fin: str | None = Query(default=None),
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    filters = normalize_list_params(fecha_inicio=fecha_inicio, fecha_fin=fecha_fin)
    return await service.summary(db, filters.date_from, filters.date_to)


@router.get("/compras/generales", response_model=schemas.GeneralPurchasePage)
async def list_general(
    fecha_inicio: str | None = Query(default=None),
    fecha_fin: str | None = Query(default=None),
    tipo_precio: str | None = Query(default=None),
    cliente: str | None = Query(default=None, max_length=100),
    pagina: str | None = Query(default=None),
    limite: str | None = Query(default=None),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    filters = normalize_list_params(
        fecha_inicio=fecha_inicio,
        fecha_fin=fecha_fin,
        tipo_precio=tipo_precio,
        buscar=cliente,
        pagina=pagina,
        limite=limite,
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )
    page = await service.list_general(db, filters)
    return {"compras": page.rows, "paginacion": page.meta()}


@router.post("/compras/generales", status_code=status.HTTP_201_CREATED, response_model=schemas.GeneralPurchase)
async def create_general(
    payload: schemas.GeneralPurchaseCreate,
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.create_general(db, payload)


@router.get("/compras/generales/{purchase_id}", response_model=schemas.GeneralPurchase)
async def get_general(
    purchase_id: RowId,
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.get_general(db, purchase_id)


@router.put("/compras/generales/{purchase_id}", response_model=schemas.GeneralPurchase)
async def update_general(
    purchase_id: RowId,
    payload: schemas.GeneralPurchaseUpdate,
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.update_general(db, purchase_id, payload)


@router.delete("/compras/generales/{purchase_id}", response_model=DeleteResult)
async def delete_general(
    purchase_id: RowId,
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.delete_general(db, purchase_id)


@router.get("/compras/materiales", response_model=schemas.MaterialPurchasePage)
async def list_material(
    fecha_inicio: str | None = Query(default=None),
    fecha_fin: str | None = Query(default=None),
    material_id: str | None = Query(default=None),
    tipo_precio: str | None = Query(default=None),
    cliente: str | None = Query(default=None, max_length=100),
    pagina: str | None = Query(default=None),
    limite: str | None = Query(default=None),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    filters = normalize_list_params(
        fecha_inicio=fecha_inicio,
        fecha_fin=fecha_fin,
        material_id=material_id,
        tipo_precio=tipo_precio,
        buscar=cliente,
        pagina=pagina,
        limite=limite,
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )
    page = await service.list_material(db, filters)
    return {"compras": page.rows, "paginacion": page.meta()}


@router.post("/compras/materiales", status_code=status.HTTP_201_CREATED, response_model=schemas.MaterialPurchase)
async def create_material_purchase(
    payload: schemas.MaterialPurchaseCreate,
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.create_material_purchase(db, payload)


@router.get("/compras/materiales/{purchase_id}", response_model=schemas.MaterialPurchase)
async def get_material_purchase(
    purchase_id: RowId,
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.get_material_purchase(db, purchase_id)


@router.put("/compras/materiales/{purchase_id}", response_model=schemas.MaterialPurchase)
async def update_material_purchase(
    purchase_id: RowId,
    payload: schemas.MaterialPurchaseUpdate,
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.update_material_purchase(db, purchase_id, payload)


@router.delete("/compras/materiales/{purchase_id}", response_model=DeleteResult)
async def delete_material_purchase(
    purchase_id: RowId,
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.delete_material_purchase(db, purchase_id)
