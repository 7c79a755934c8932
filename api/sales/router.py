"""
Sales API endpoints.
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


@router.get("/ventas/clientes/lista")
async def search_clients(
    buscar: str | None = Query(default=None, max_length=100),
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> list[str]:
    return await service.search_clients(db, buscar)


@router.get("/ventas/estadisticas/resumen")
async def sales_summary(
    fecha_inicio: str | None = Query(default=None),
    fecha_fin: str | None = Query(default=None),
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    filters = normalize_list_params(fecha_inicio=fecha_inicio, fecha_fin=fecha_fin)
    return await service.summary(db, filters.date_from, filters.date_to)


@router.get("/ventas", response_model=schemas.SalePage)
async def list_sales(
    fecha_inicio: str | None = Query(default=None),
    fecha_fin: str | None = Query(default=None),
    material_id: str | None = Query(default=None),
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
        buscar=cliente,
        pagina=pagina,
        limite=limite,
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )
    page = await service.list_sales(db, filters)
    return {"ventas": page.rows, "paginacion": page.meta()}


@router.post("/ventas", status_code=status.HTTP_201_CREATED, response_model=schemas.Sale)
async def create_sale(
    payload: schemas.SaleCreate,
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.create_sale(db, payload)


@router.get("/ventas/{sale_id}", response_model=schemas.Sale)
async def get_sale(
    sale_id: RowId,
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.get_sale(db, sale_id)


@router.put("/ventas/{sale_id}", response_model=schemas.Sale)
async def update_sale(
    sale_id: RowId,
    payload: schemas.SaleUpdate,
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.update_sale(db, sale_id, payload)


@router.delete("/ventas/{sale_id}", response_model=DeleteResult)
async def delete_sale(
    sale_id: RowId,
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.delete_sale(db, sale_id)
