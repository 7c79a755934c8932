import asyncio
from datetime import date

import pytest

from core import schema
from core.config import Settings, backend_for_url, sqlite_path
from core.db import Database
from core.errors import ConstraintViolation, QueryShapeError, ResourceExhausted


def _run(settings: Settings, scenario):
    async def main():
        db = await Database.connect(settings)
        try:
            await schema.initialize(db)
            return await scenario(db)
        finally:
            await db.close()

    return asyncio.run(main())


def test_backend_selection():
    assert backend_for_url("postgresql://u:p@localhost/db") == "postgres"
    assert backend_for_url("sqlite:///./data/x.db") == "sqlite"
    assert sqlite_path("sqlite:///./data/x.db") == "./data/x.db"
    assert sqlite_path("sqlite:////tmp/x.db") == "/tmp/x.db"
    assert sqlite_path("sqlite://") == ":memory:"
    with pytest.raises(ValueError):
        backend_for_url("mysql://localhost/db")


def test_seed_runs_once(settings):
    async def scenario(db):
        await schema.initialize(db)
        materials = await db.fetch_one("SELECT COUNT(*) AS total FROM materiales")
        categories = await db.fetch_one("SELECT COUNT(*) AS total FROM categorias_gastos")
        return materials["total"], categories["total"]

    assert _run(settings, scenario) == (len(schema.SEED_MATERIALS), len(schema.SEED_EXPENSE_CATEGORIES))


def test_insert_returns_id_and_rows_normalize(settings):
    async def scenario(db):
        result = await db.insert(
            "INSERT INTO compras_generales (fecha, total_pesos, tipo_precio) VALUES (?, ?, ?)",
            date(2024, 5, 1),
            1500.5,
            "ordinario",
        )
        row = await db.fetch_one("SELECT * FROM compras_generales WHERE id = ?", result.last_id)
        return result, row

    result, row = _run(settings, scenario)
    assert result.last_id is not None
    assert row["fecha"] == "2024-05-01"
    assert row["total_pesos"] == 1500.5
    assert row["tipo_precio"] == "ordinario"


def test_execute_reports_rows_changed(settings):
    async def scenario(db):
        changed = await db.execute("UPDATE materiales SET activo = ? WHERE categoria = ?", False, "Vidrios")
        missing = await db.execute("DELETE FROM gastos WHERE id = ?", 999)
        inactive = await db.fetch_all("SELECT nombre, activo FROM materiales WHERE activo = ?", False)
        return changed.rows_changed, missing.rows_changed, inactive

    changed, missing, inactive = _run(settings, scenario)
    assert changed == 2
    assert missing == 0
    assert {row["nombre"] for row in inactive} == {"Vidrio", "Clausen"}
    assert all(row["activo"] is False for row in inactive)


def test_unique_violation_is_tagged(settings):
    async def scenario(db):
        await db.insert("INSERT INTO materiales (nombre, categoria) VALUES (?, ?)", "Zinc", "Metales")
        await db.insert("INSERT INTO materiales (nombre, categoria) VALUES (?, ?)", "ZINC", "Metales")

    with pytest.raises(ConstraintViolation) as info:
        _run(settings, scenario)
    assert info.value.kind == "unique"
    assert info.value.status_code == 409


def test_foreign_key_violation_is_a_bad_request(settings):
    async def scenario(db):
        await db.insert(
            "INSERT INTO ventas (material_id, fecha, kilos, precio_kilo, total_pesos) VALUES (?, ?, ?, ?, ?)",
            424242,
            date(2024, 1, 1),
            1,
            1,
            1,
        )

    with pytest.raises(ConstraintViolation) as info:
        _run(settings, scenario)
    assert info.value.kind == "foreign_key"
    assert info.value.status_code == 400


def test_placeholder_mismatch_never_executes(settings):
    async def scenario(db):
        with pytest.raises(QueryShapeError):
            await db.execute("DELETE FROM materiales WHERE id = ? OR id = ?", 1)
        row = await db.fetch_one("SELECT COUNT(*) AS total FROM materiales")
        return row["total"]

    assert _run(settings, scenario) == len(schema.SEED_MATERIALS)


def test_empty_aggregates_read_as_zero(settings):
    async def scenario(db):
        return await db.fetch_one("SELECT SUM(total_pesos) AS total_pesos, AVG(kilos) AS promedio FROM ventas")

    assert _run(settings, scenario) == {"total_pesos": 0, "promedio": 0}


def test_exhausted_pool_times_out(tmp_path):
    settings = Settings(database_url=f"sqlite:///{tmp_path}/pool.db", db_pool_max=1, db_acquire_timeout=0.05)

    async def scenario(db):
        async with db._backend._acquire():
            with pytest.raises(ResourceExhausted):
                await db.fetch_one("SELECT 1 AS uno")
        return await db.fetch_one("SELECT 1 AS uno")

    assert _run(settings, scenario) == {"uno": 1}
