"""
Runs the storage adapter and report queries against a live Postgres server.

Set TEST_POSTGRES_DATABASE_URL to a disposable database to enable.
"""

import asyncio
import os
from datetime import date

import pytest

from core import schema
from core.config import Settings
from core.db import Database
from core.errors import ConstraintViolation
from reports import service as reports_service

POSTGRES_URL = os.environ.get("TEST_POSTGRES_DATABASE_URL", "").strip()

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not POSTGRES_URL, reason="TEST_POSTGRES_DATABASE_URL is not set"),
]

TABLES = ("gastos", "categorias_gastos", "ventas", "compras_materiales", "compras_generales", "materiales", "usuarios")


def _run(scenario):
    async def main():
        db = await Database.connect(Settings(database_url=POSTGRES_URL, db_pool_max=2))
        try:
            for table in TABLES:
                await db.execute(f"DROP TABLE IF EXISTS {table} CASCADE")
            await schema.initialize(db)
            return await scenario(db)
        finally:
            await db.close()

    return asyncio.run(main())


def test_round_trip_and_normalization():
    async def scenario(db):
        material = await db.fetch_one("SELECT id FROM materiales WHERE nombre = ?", "Cobre #1")
        result = await db.insert(
            """
            INSERT INTO compras_materiales (material_id, fecha, kilos, precio_kilo, total_pesos, tipo_precio)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            material["id"],
            date(2024, 1, 15),
            1000,
            21,
            21000.0,
            "camion",
        )
        return await db.fetch_one("SELECT * FROM compras_materiales WHERE id = ?", result.last_id)

    row = _run(scenario)
    assert row["fecha"] == "2024-01-15"
    assert row["total_pesos"] == 21000
    assert isinstance(row["kilos"], (int, float))


def test_case_insensitive_unique_name():
    async def scenario(db):
        await db.insert("INSERT INTO materiales (nombre, categoria) VALUES (?, ?)", "chatarra", "Metales")

    with pytest.raises(ConstraintViolation) as info:
        _run(scenario)
    assert info.value.status_code == 409


def test_profit_report_groups_by_month():
    async def scenario(db):
        await db.insert(
            "INSERT INTO compras_generales (fecha, total_pesos, tipo_precio) VALUES (?, ?, ?)",
            date(2024, 1, 5),
            4000,
            "ordinario",
        )
        return await reports_service.profit_report(db, date(2024, 1, 1), date(2024, 1, 31), "mes")

    report = _run(scenario)["reporte"]
    assert [row["periodo"] for row in report] == ["2024-01"]
    assert report[0]["compras"] == 4000
