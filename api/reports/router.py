"""
Report API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from auth import dependencies as auth_dependencies
from core.db import Database, get_db
from core.query import normalize_list_params

from . import service

router = APIRouter()


@router.get("/reportes/dashboard")
async def dashboard(
    periodo: str | None = Query(default=None),
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.dashboard(db, periodo)


@router.get("/reportes/ganancias")
async def profit_report(
    fecha_inicio: str | None = Query(default=None),
    fecha_fin: str | None = Query(default=None),
    agrupar_por: str | None = Query(default=None),
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    filters = normalize_list_params(fecha_inicio=fecha_inicio, fecha_fin=fecha_fin)
    return await service.profit_report(db, filters.date_from, filters.date_to, agrupar_por)


@router.get("/reportes/materiales")
async def materials_report(
    fecha_inicio: str | None = Query(default=None),
    fecha_fin: str | None = Query(default=None),
    categoria: str | None = Query(default=None),
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    filters = normalize_list_params(fecha_inicio=fecha_inicio, fecha_fin=fecha_fin)
    return await service.materials_report(db, filters.date_from, filters.date_to, categoria)


@router.get("/reportes/promedios-compra")
async def purchase_averages(
    fecha_inicio: str | None = Query(default=None),
    fecha_fin: str | None = Query(default=None),
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    filters = normalize_list_params(fecha_inicio=fecha_inicio, fecha_fin=fecha_fin)
    return await service.purchase_averages(db, filters.date_from, filters.date_to)


@router.get("/reportes/export/backup")
async def export_backup(
    tabla: str | None = Query(default=None),
    fecha_inicio: str | None = Query(default=None),
    fecha_fin: str | None = Query(default=None),
    db: Database = Depends(get_db),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    filters = normalize_list_params(fecha_inicio=fecha_inicio, fecha_fin=fecha_fin)
    return await service.export_backup(db, tabla, filters.date_from, filters.date_to)


@router.get("/dashboard")
async def home_dashboard(
    db: Database = Depends(get_db),
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    payload = await service.dashboard(db, "mes")
    payload["usuario"] = {"nombre": current_user["nombre"], "rol": current_user["rol"]}
    return payload
