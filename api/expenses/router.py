"""
Expense API endpoints.

Category routes are declared before `/gastos/{expense_id}` so that
`/gastos/categorias` is not captured as an expense id.
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


@router.get("/gastos/categorias", response_model=schemas.CategoryPage)
async def list_categories(
    activo: str | None = Query(default=None),
    pagina: str | None = Query(default=None),
    limite: str | None = Query(default=None),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    filters = normalize_list_params(
        activo=activo,
        pagina=pagina,
        limite=limite,
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )
    page = await service.list_categories(db, filters)
    return {"categorias": page.rows, "paginacion": page.meta()}


@router.post("/gastos/categorias", status_code=status.HTTP_201_CREATED, response_model=schemas.Category)
async def create_category(
    payload: schemas.CategoryCreate,
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.create_category(db, payload)


@router.get("/gastos/categorias/{category_id}", response_model=schemas.Category)
async def get_category(
    category_id: RowId,
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.get_category(db, category_id)


@router.put("/gastos/categorias/{category_id}", response_model=schemas.Category)
async def update_category(
    category_id: RowId,
    payload: schemas.CategoryUpdate,
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.update_category(db, category_id, payload)


@router.delete("/gastos/categorias/{category_id}", response_model=DeleteResult)
async def delete_category(
    category_id: RowId,
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.delete_category(db, category_id)


@router.get("/gastos/estadisticas/resumen")
async def expense_summary(
    fecha_inicio: str | None = Query(default=None),
    fecha_fin: str | None = Query(default=None),
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    filters = normalize_list_params(fecha_inicio=fecha_inicio, fecha_fin=fecha_fin)
    return await service.summary(db, filters.date_from, filters.date_to)


@router.get("/gastos", response_model=schemas.ExpensePage)
async def list_expenses(
    fecha_inicio: str | None = Query(default=None),
    fecha_fin: str | None = Query(default=None),
    categoria_id: str | None = Query(default=None),
    buscar: str | None = Query(default=None, max_length=200),
    pagina: str | None = Query(default=None),
    limite: str | None = Query(default=None),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    filters = normalize_list_params(
        fecha_inicio=fecha_inicio,
        fecha_fin=fecha_fin,
        categoria_id=categoria_id,
        buscar=buscar,
        pagina=pagina,
        limite=limite,
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )
    page = await service.list_expenses(db, filters)
    return {"gastos": page.rows, "paginacion": page.meta()}


@router.post("/gastos", status_code=status.HTTP_201_CREATED, response_model=schemas.Expense)
async def create_expense(
    payload: schemas.ExpenseCreate,
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.create_expense(db, payload)


@router.get("/gastos/{expense_id}", response_model=schemas.Expense)
async def get_expense(
    expense_id: RowId,
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.get_expense(db, expense_id)


@router.put("/gastos/{expense_id}", response_model=schemas.Expense)
async def update_expense(
    expense_id: RowId,
    payload: schemas.ExpenseUpdate,
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.update_expense(db, expense_id, payload)


@router.delete("/gastos/{expense_id}", response_model=DeleteResult)
async def delete_expense(
    expense_id: RowId,
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.delete_expense(db, expense_id)
