"""
Report business logic.

Totals and margins are computed here from the aggregate rows the repository
returns. Money figures are rounded half-up to cents; margins are
(sales - purchases) / sales * 100 and exactly 0 when there were no sales.
"""

from __future__ import annotations

import calendar
import logging
from datetime import date, datetime, timedelta, timezone

from core.db import Database
from core.errors import ValidationError
from core.money import margin_percent, round_row, to_money, to_weight

from . import repository

logger = logging.getLogger(__name__)

DASHBOARD_PERIODS = ("dia", "semana", "mes", "trimestre", "año")
GROUPINGS = {"dia": "day", "semana": "week", "mes": "month", "año": "year"}
WEEKDAY_NAMES = ("Domingo", "Lunes", "Martes", "Miércoles", "Jueves", "Viernes", "Sábado")
BACKUP_TABLES = tuple(repository.BACKUP_QUERIES)
TOP_SOLD = 5


def _money(value: float | int) -> float:
    return float(to_money(value or 0))


def _percent(value: float) -> float:
    return round(value, 2)


def _months_ago(day: date, months: int) -> date:
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def today() -> date:
    return datetime.now(timezone.utc).date()


def period_start(periodo: str, end: date) -> date:
    """First day of the dashboard window; unknown periods cover one month."""
    if periodo == "dia":
        return end
    if periodo == "semana":
        return end - timedelta(days=7)
    if periodo == "trimestre":
        return _months_ago(end, 3)
    if periodo == "año":
        return _months_ago(end, 12)
    return _months_ago(end, 1)


def require_range(date_from: date | None, date_to: date | None) -> tuple[date, date]:
    if date_from is None or date_to is None:
        raise ValidationError("Fecha de inicio y fin son requeridas")
    return date_from, date_to


async def dashboard(db: Database, periodo: str | None, *, end: date | None = None) -> dict:
    periodo = (periodo or "").strip()
    if periodo not in DASHBOARD_PERIODS:
        periodo = "mes"
    end = end or today()
    start = period_start(periodo, end)

    general = await repository.sum_amount(db, "compras_generales", start, end)
    material = await repository.sum_amount(db, "compras_materiales", start, end)
    sales = await repository.sales_totals(db, start, end)
    expenses = await repository.sum_amount(db, "gastos", start, end)

    # Bulk and itemized purchases are summed as recorded; the two books are
    # not reconciled against each other.
    total_compras = _money(general + material)
    total_ventas = _money(sales["total"])
    total_gastos = _money(expenses)
    ganancia_bruta = _money(total_ventas - total_compras)

    return {
        "periodo": periodo,
        "fecha_inicio": start.isoformat(),
        "fecha_fin": end.isoformat(),
        "resumen": {
            "total_compras_generales": _money(general),
            "total_compras_materiales": _money(material),
            "total_compras": total_compras,
            "total_ventas": total_ventas,
            "total_gastos": total_gastos,
            "ganancia_bruta": ganancia_bruta,
            "ganancia_neta": _money(ganancia_bruta - total_gastos),
            "margen_ganancia": _percent(margin_percent(total_ventas, total_compras)),
            "total_kilos_vendidos": float(sales["kilos"] or 0),
        },
        "materiales_mas_vendidos": [
            round_row(row, money=("total_pesos",), weight=("total_kilos",))
            for row in await repository.top_sold_materials(db, start, end, limit=TOP_SOLD)
        ],
        "evolucion_diaria": [
            round_row(row, money=("ventas_dia",)) for row in await repository.daily_sales(db, start, end)
        ],
    }


async def profit_report(
    db: Database,
    date_from: date | None,
    date_to: date | None,
    agrupar_por: str | None,
) -> dict:
    start, end = require_range(date_from, date_to)
    grouping = (agrupar_por or "dia").strip()
    if grouping not in GROUPINGS:
        raise ValidationError("agrupar_por debe ser: dia, semana, mes o año")
    period_fn = GROUPINGS[grouping]

    purchases = {row["periodo"]: row for row in await repository.purchases_by_period(db, period_fn, start, end)}
    sales = {row["periodo"]: row for row in await repository.sales_by_period(db, period_fn, start, end)}
    expenses = {row["periodo"]: row for row in await repository.expenses_by_period(db, period_fn, start, end)}

    report = []
    for periodo in sorted(set(purchases) | set(sales) | set(expenses)):
        compras = _money(purchases.get(periodo, {}).get("total_compras", 0))
        ventas = _money(sales.get(periodo, {}).get("total_ventas", 0))
        gastos = _money(expenses.get(periodo, {}).get("total_gastos", 0))
        bruta = _money(ventas - compras)
        report.append(
            {
                "periodo": periodo,
                "compras": compras,
                "ventas": ventas,
                "gastos": gastos,
                "ganancia_bruta": bruta,
                "ganancia_neta": _money(bruta - gastos),
                "margen": _percent(margin_percent(ventas, compras)),
                "kilos_vendidos": float(sales.get(periodo, {}).get("total_kilos", 0) or 0),
            }
        )

    return {
        "fecha_inicio": start.isoformat(),
        "fecha_fin": end.isoformat(),
        "agrupacion": grouping,
        "reporte": report,
    }


async def materials_report(
    db: Database,
    date_from: date | None,
    date_to: date | None,
    categoria: str | None,
) -> dict:
    start, end = require_range(date_from, date_to)
    categoria = (categoria or "").strip() or None

    sold = await repository.sales_by_material(db, start, end, categoria)
    bought = {row["material_id"]: row for row in await repository.purchases_by_material(db, start, end, categoria)}

    materiales = []
    for row in sold:
        purchase = bought.get(row["material_id"], {})
        total_ventas = _money(row["total_ventas"])
        total_compras = _money(purchase.get("total_compras", 0))
        materiales.append(
            {
                **round_row(
                    row,
                    money=("precio_promedio_venta", "precio_maximo", "precio_minimo"),
                    weight=("total_kilos_vendidos",),
                ),
                "total_ventas": total_ventas,
                "total_kilos_comprados": float(to_weight(purchase.get("total_kilos_comprados") or 0)),
                "total_compras": total_compras,
                "precio_promedio_compra": _money(purchase.get("precio_promedio_compra", 0)),
                "transacciones_compra": purchase.get("transacciones_compra", 0),
                "ganancia_material": _money(total_ventas - total_compras),
                "margen_material": _percent(margin_percent(total_ventas, total_compras)),
            }
        )

    return {
        "fecha_inicio": start.isoformat(),
        "fecha_fin": end.isoformat(),
        "categoria": categoria or "Todas",
        "materiales": materiales,
    }


async def purchase_averages(db: Database, date_from: date | None, date_to: date | None) -> dict:
    start, end = require_range(date_from, date_to)

    general = await repository.general_purchase_averages(db, start, end)
    material = await repository.material_purchase_averages(db, start, end)
    by_weekday = await repository.purchases_by_weekday(db, start, end)

    total_compras = _money((general.get("total_compras") or 0) + (material.get("total_compras") or 0))
    total_transacciones = int(general.get("total_transacciones") or 0) + int(material.get("total_transacciones") or 0)
    dias_totales = (end - start).days + 1

    return {
        "fecha_inicio": start.isoformat(),
        "fecha_fin": end.isoformat(),
        "resumen": {
            "total_compras": total_compras,
            "total_transacciones": total_transacciones,
            "dias_totales": dias_totales,
            "promedio_diario": _money(total_compras / dias_totales),
            "promedio_por_transaccion": _money(total_compras / total_transacciones) if total_transacciones else 0.0,
        },
        "compras_generales": round_row(general, money=("total_compras", "promedio_por_transaccion")),
        "compras_materiales": round_row(
            material,
            money=("total_compras", "promedio_por_transaccion", "precio_promedio_kilo"),
            weight=("total_kilos",),
        ),
        "compras_por_dia_semana": [
            {**row, "dia_semana": WEEKDAY_NAMES[int(row["dia_numero"])]} for row in by_weekday
        ],
    }


async def export_backup(db: Database, tabla: str | None, date_from: date | None, date_to: date | None) -> dict:
    tabla = (tabla or "").strip() or None
    if tabla is not None and tabla not in BACKUP_TABLES:
        raise ValidationError("Tabla no válida")

    tables = [tabla] if tabla else list(BACKUP_TABLES)
    datos = {name: await repository.export_table(db, name, date_from, date_to) for name in tables}
    logger.info("backup_exported tablas=%s", ",".join(tables))
    return {
        "fecha_exportacion": datetime.now(timezone.utc).isoformat(),
        "filtros": {
            "tabla": tabla or "todas",
            "fecha_inicio": date_from.isoformat() if date_from else None,
            "fecha_fin": date_to.isoformat() if date_to else None,
        },
        "datos": datos,
    }
