import asyncio
from datetime import date

import pytest

from core import schema
from core.db import Database
from reports import service


@pytest.fixture
def ledger(client, admin_headers, material):
    """One month of activity: bulk and itemized purchases, two sales, one expense."""
    client.post(
        "/api/compras/generales",
        json={"fecha": "2024-01-05", "total_pesos": 4000, "tipo_precio": "ordinario"},
        headers=admin_headers,
    )
    client.post(
        "/api/compras/materiales",
        json={"material_id": material["id"], "fecha": "2024-01-07", "kilos": 100, "precio_kilo": 60, "tipo_precio": "noche"},
        headers=admin_headers,
    )
    for day, kilos in (("2024-01-08", 50), ("2024-02-02", 50)):
        client.post(
            "/api/ventas",
            json={"material_id": material["id"], "fecha": day, "kilos": kilos, "precio_kilo": 200},
            headers=admin_headers,
        )
    categories = client.get("/api/gastos/categorias", headers=admin_headers).json()["categorias"]
    client.post(
        "/api/gastos",
        json={"categoria_id": categories[0]["id"], "fecha": "2024-01-20", "concepto": "Almuerzo", "valor": 1000},
        headers=admin_headers,
    )
    return material


def test_months_ago_clamps_to_month_end():
    assert service._months_ago(date(2024, 3, 31), 1) == date(2024, 2, 29)
    assert service._months_ago(date(2024, 1, 15), 3) == date(2023, 10, 15)
    assert service.period_start("semana", date(2024, 1, 10)) == date(2024, 1, 3)
    assert service.period_start("año", date(2024, 2, 29)) == date(2023, 2, 28)


def test_dashboard_on_empty_store_reports_zeros(client, admin_headers):
    response = client.get("/api/reportes/dashboard", params={"periodo": "trimestre"}, headers=admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["periodo"] == "trimestre"
    assert body["resumen"] == {
        "total_compras_generales": 0,
        "total_compras_materiales": 0,
        "total_compras": 0,
        "total_ventas": 0,
        "total_gastos": 0,
        "ganancia_bruta": 0,
        "ganancia_neta": 0,
        "margen_ganancia": 0,
        "total_kilos_vendidos": 0,
    }
    assert body["materiales_mas_vendidos"] == []
    assert body["evolucion_diaria"] == []


def test_dashboard_unknown_period_covers_one_month(client, admin_headers):
    response = client.get("/api/reportes/dashboard", params={"periodo": "siglo"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["periodo"] == "mes"
    assert service.period_start("siglo", date(2024, 3, 31)) == date(2024, 2, 29)


def test_dashboard_totals(settings, client, ledger):
    async def scenario():
        db = await Database.connect(settings)
        try:
            await schema.initialize(db)
            return await service.dashboard(db, "mes", end=date(2024, 1, 31))
        finally:
            await db.close()

    body = asyncio.run(scenario())
    assert body["fecha_inicio"] == "2023-12-31"
    summary = body["resumen"]
    assert summary["total_compras_generales"] == 4000
    assert summary["total_compras_materiales"] == 6000
    assert summary["total_compras"] == 10000
    assert summary["total_ventas"] == 10000
    assert summary["total_gastos"] == 1000
    assert summary["ganancia_bruta"] == 0
    assert summary["ganancia_neta"] == -1000
    assert summary["margen_ganancia"] == 0
    assert summary["total_kilos_vendidos"] == 50
    assert body["materiales_mas_vendidos"][0]["nombre"] == "Cobre Prueba"
    assert body["evolucion_diaria"] == [{"fecha": "2024-01-08", "ventas_dia": 10000}]


def test_profit_report_by_month(client, admin_headers, ledger):
    response = client.get(
        "/api/reportes/ganancias",
        params={"fecha_inicio": "2024-01-01", "fecha_fin": "2024-02-29", "agrupar_por": "mes"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    january, february = response.json()["reporte"]
    assert january["periodo"] == "2024-01"
    assert january["compras"] == 10000
    assert january["ventas"] == 10000
    assert january["gastos"] == 1000
    assert january["ganancia_neta"] == -1000
    assert february == {
        "periodo": "2024-02",
        "compras": 0,
        "ventas": 10000,
        "gastos": 0,
        "ganancia_bruta": 10000,
        "ganancia_neta": 10000,
        "margen": 100,
        "kilos_vendidos": 50,
    }


def test_profit_report_weeks_start_on_monday(client, admin_headers, ledger):
    response = client.get(
        "/api/reportes/ganancias",
        params={"fecha_inicio": "2024-01-01", "fecha_fin": "2024-02-29", "agrupar_por": "semana"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    report = response.json()["reporte"]
    assert [row["periodo"] for row in report] == ["2024-01-01", "2024-01-08", "2024-01-15", "2024-01-29"]
    assert report[0]["compras"] == 10000
    assert report[1]["ventas"] == 10000
    assert report[2]["gastos"] == 1000


def test_profit_report_requires_dates_and_known_grouping(client, admin_headers):
    missing = client.get("/api/reportes/ganancias", headers=admin_headers)
    assert missing.status_code == 400
    assert missing.json()["error"] == "Fecha de inicio y fin son requeridas"

    unknown = client.get(
        "/api/reportes/ganancias",
        params={"fecha_inicio": "2024-01-01", "fecha_fin": "2024-01-31", "agrupar_por": "hora"},
        headers=admin_headers,
    )
    assert unknown.status_code == 400


def test_materials_report(client, admin_headers, ledger):
    body = client.get(
        "/api/reportes/materiales",
        params={"fecha_inicio": "2024-01-01", "fecha_fin": "2024-01-31"},
        headers=admin_headers,
    ).json()
    assert body["categoria"] == "Todas"
    (row,) = body["materiales"]
    assert row["material_id"] == ledger["id"]
    assert row["total_ventas"] == 10000
    assert row["total_compras"] == 6000
    assert row["ganancia_material"] == 4000
    assert row["margen_material"] == 40


def test_purchase_averages(client, admin_headers, ledger):
    body = client.get(
        "/api/reportes/promedios-compra",
        params={"fecha_inicio": "2024-01-01", "fecha_fin": "2024-01-10"},
        headers=admin_headers,
    ).json()
    summary = body["resumen"]
    assert summary["total_compras"] == 10000
    assert summary["total_transacciones"] == 2
    assert summary["dias_totales"] == 10
    assert summary["promedio_diario"] == 1000
    assert summary["promedio_por_transaccion"] == 5000
    # 2024-01-05 is a Friday, 2024-01-07 a Sunday.
    assert [(row["dia_numero"], row["dia_semana"]) for row in body["compras_por_dia_semana"]] == [
        (0, "Domingo"),
        (5, "Viernes"),
    ]


def test_backup_export(client, admin_headers, ledger):
    body = client.get(
        "/api/reportes/export/backup",
        params={"tabla": "ventas", "fecha_inicio": "2024-02-01"},
        headers=admin_headers,
    ).json()
    assert list(body["datos"]) == ["ventas"]
    assert [row["fecha"] for row in body["datos"]["ventas"]] == ["2024-02-02"]
    assert body["filtros"]["tabla"] == "ventas"

    everything = client.get("/api/reportes/export/backup", headers=admin_headers).json()
    assert set(everything["datos"]) == {"materiales", "compras_generales", "compras_materiales", "ventas", "gastos"}

    rejected = client.get("/api/reportes/export/backup", params={"tabla": "usuarios"}, headers=admin_headers)
    assert rejected.status_code == 400
    assert rejected.json()["error"] == "Tabla no válida"


def test_home_dashboard_includes_caller(client, admin_headers):
    body = client.get("/api/dashboard", headers=admin_headers).json()
    assert body["periodo"] == "mes"
    assert body["usuario"] == {"nombre": "Administrador", "rol": "administrador"}
