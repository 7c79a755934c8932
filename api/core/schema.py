"""
Schema creation and seed data.

Table DDL is composed through `Dialect.ddl_fragment()` so the same statement
list works on SQLite and Postgres. Tables fail loudly; indexes are best
effort (an existing or unsupported index is logged and skipped).
"""

from __future__ import annotations

import logging

from .db import Database
from .dialects import Dialect
from .errors import AppError

logger = logging.getLogger(__name__)

SEED_EXPENSE_CATEGORIES = (
    ("Sueldos", "Pagos de salarios y prestaciones"),
    ("Gas Camión", "Combustible para vehículos"),
    ("Alimentación", "Gastos de comida y bebidas"),
    ("Otros", "Gastos varios y misceláneos"),
    ("Mantenimiento", "Reparaciones y mantenimiento"),
    ("Servicios", "Agua, luz, internet, etc."),
)

SEED_MATERIALS = (
    ("Chatarra", "Metales"),
    ("Cobre #1", "Metales-Cobre"),
    ("Cobre #2", "Metales-Cobre"),
    ("Radiador de Cobre", "Metales-Cobre"),
    ("Bronce Limpio", "Metales-Bronce"),
    ("Bronce Pintado", "Metales-Bronce"),
    ("Acero Grueso Limpio", "Metales-Acero"),
    ("Grueso Sucio", "Metales-Acero"),
    ("Olla Limpia", "Metales-Ollas"),
    ("Olla Sucia", "Metales-Ollas"),
    ("Perfil Limpio", "Metales-Perfiles"),
    ("Perfil Sucio", "Metales-Perfiles"),
    ("Guaya", "Metales-Varios"),
    ("Antimonio", "Metales-Varios"),
    ("Radiador Aluminio", "Metales-Aluminio"),
    ("Plancha", "Metales-Aluminio"),
    ("Rin Carro", "Metales-Aluminio"),
    ("Rin Cicla", "Metales-Aluminio"),
    ("Aerosol Limpio", "Metales-Aluminio"),
    ("Cartón", "Papeles"),
    ("Archivo", "Papeles"),
    ("PET", "Plásticos"),
    ("Ambar", "Plásticos"),
    ("Tapas", "Plásticos"),
    ("Canecas", "Plásticos"),
    ("Vasija Verde", "Plásticos"),
    ("Soplado", "Plásticos"),
    ("Aceite", "Plásticos"),
    ("PVC Tubo", "Plásticos"),
    ("PVC Techo", "Plásticos"),
    ("PVC Blando", "Plásticos"),
    ("Plástico", "Plásticos"),
    ("Acrílico", "Plásticos"),
    ("Vidrio", "Vidrios"),
    ("Clausen", "Vidrios"),
    ("Baterias Taxi 22", "Baterías"),
    ("Baterias 24", "Baterías"),
    ("Baterias 27", "Baterías"),
    ("Bateria 30H", "Baterías"),
    ("Baterias 4D", "Baterías"),
    ("Baterias 8D", "Baterías"),
    ("Moto Plomo", "Baterías"),
    ("Balancines", "Baterías"),
    ("Baterias Polimero (no inflada)", "Baterías-Electrónicos"),
    ("Baterias Celular (no inflada)", "Baterías-Electrónicos"),
    ("Bateria Portatil (no inflada)", "Baterías-Electrónicos"),
    ("CD", "Electrónicos"),
    ("Disco Duro", "Electrónicos"),
    ("Tarjeta Bajo Marrón", "Electrónicos-Tarjetas"),
    ("Tarjeta Bajo Verde", "Electrónicos-Tarjetas"),
    ("Tarjeta Decodificador", "Electrónicos-Tarjetas"),
    ("Tarjeta Modem", "Electrónicos-Tarjetas"),
    ("Tarjeta Tipo #1", "Electrónicos-Tarjetas"),
    ("Tarjeta Pentium", "Electrónicos-Tarjetas"),
    ("Tarjeta Tablet", "Electrónicos-Tarjetas"),
    ("Tarjeta Celular", "Electrónicos-Tarjetas"),
    ("Celular Smart", "Electrónicos-Dispositivos"),
    ("Celular Teclas", "Electrónicos-Dispositivos"),
    ("Tablet", "Electrónicos-Dispositivos"),
    ("RAM Dorada", "Electrónicos-Componentes"),
    ("Procesador UND", "Electrónicos-Componentes"),
)


def table_statements(d: Dialect) -> list[str]:
    pk = d.ddl_fragment("pk")
    boolean = d.ddl_fragment("bool")
    day = d.ddl_fragment("date")
    ts = d.ddl_fragment("timestamp")
    now = d.ddl_fragment("now")
    money = d.ddl_fragment("money")
    weight = d.ddl_fragment("weight")
    true = d.bool_literal(True)

    return [
        f"""
        CREATE TABLE IF NOT EXISTS materiales (
            id {pk},
            nombre VARCHAR(100) NOT NULL,
            categoria VARCHAR(50) NOT NULL,
            precio_ordinario {money} DEFAULT 0,
            precio_camion {money} DEFAULT 0,
            precio_noche {money} DEFAULT 0,
            activo {boolean} DEFAULT {true},
            fecha_creacion {ts} {now},
            fecha_actualizacion {ts} {now}
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS compras_generales (
            id {pk},
            fecha {day} NOT NULL,
            total_pesos {money} NOT NULL,
            tipo_precio VARCHAR(20) NOT NULL
                CHECK (tipo_precio IN ('ordinario', 'camion', 'noche')),
            cliente VARCHAR(100),
            observaciones TEXT,
            fecha_creacion {ts} {now}
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS compras_materiales (
            id {pk},
            material_id INTEGER NOT NULL REFERENCES materiales(id),
            fecha {day} NOT NULL,
            kilos {weight} NOT NULL CHECK (kilos > 0),
            precio_kilo {money} NOT NULL CHECK (precio_kilo > 0),
            total_pesos {money} NOT NULL,
            tipo_precio VARCHAR(20) NOT NULL
                CHECK (tipo_precio IN ('ordinario', 'camion', 'noche')),
            cliente VARCHAR(100),
            observaciones TEXT,
            fecha_creacion {ts} {now}
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS ventas (
            id {pk},
            material_id INTEGER NOT NULL REFERENCES materiales(id),
            fecha {day} NOT NULL,
            kilos {weight} NOT NULL CHECK (kilos > 0),
            precio_kilo {money} NOT NULL CHECK (precio_kilo > 0),
            total_pesos {money} NOT NULL,
            cliente VARCHAR(100),
            observaciones TEXT,
            fecha_creacion {ts} {now}
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS categorias_gastos (
            id {pk},
            nombre VARCHAR(50) NOT NULL UNIQUE,
            descripcion TEXT,
            activo {boolean} DEFAULT {true}
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS gastos (
            id {pk},
            categoria_id INTEGER NOT NULL REFERENCES categorias_gastos(id),
            fecha {day} NOT NULL,
            concepto VARCHAR(200) NOT NULL,
            valor {money} NOT NULL CHECK (valor > 0),
            observaciones TEXT,
            fecha_creacion {ts} {now}
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS usuarios (
            id {pk},
            nombre VARCHAR(100) NOT NULL,
            email VARCHAR(255) NOT NULL UNIQUE,
            password_hash VARCHAR(255) NOT NULL,
            rol VARCHAR(50) DEFAULT 'usuario',
            activo {boolean} DEFAULT {true},
            fecha_creacion {ts} {now},
            fecha_actualizacion {ts} {now},
            ultimo_acceso {ts},
            intentos_fallidos INTEGER DEFAULT 0,
            bloqueado_hasta {ts}
        )
        """,
    ]


INDEX_STATEMENTS = (
    "CREATE UNIQUE INDEX IF NOT EXISTS uq_materiales_nombre_lower ON materiales (LOWER(nombre))",
    "CREATE INDEX IF NOT EXISTS idx_materiales_categoria ON materiales (categoria)",
    "CREATE INDEX IF NOT EXISTS idx_compras_generales_fecha ON compras_generales (fecha)",
    "CREATE INDEX IF NOT EXISTS idx_compras_materiales_fecha ON compras_materiales (fecha)",
    "CREATE INDEX IF NOT EXISTS idx_compras_materiales_material ON compras_materiales (material_id)",
    "CREATE INDEX IF NOT EXISTS idx_ventas_fecha ON ventas (fecha)",
    "CREATE INDEX IF NOT EXISTS idx_ventas_material ON ventas (material_id)",
    "CREATE INDEX IF NOT EXISTS idx_gastos_fecha ON gastos (fecha)",
    "CREATE INDEX IF NOT EXISTS idx_gastos_categoria ON gastos (categoria_id)",
    "CREATE INDEX IF NOT EXISTS idx_usuarios_activo ON usuarios (activo)",
)


async def create_tables(db: Database) -> None:
    for statement in table_statements(db.dialect):
        await db.execute(statement)

    for statement in INDEX_STATEMENTS:
        try:
            await db.execute(statement)
        except AppError as exc:
            logger.warning("index_skipped statement=%r error=%s", statement, exc.message)


async def seed_catalogs(db: Database) -> None:
    row = await db.fetch_one("SELECT COUNT(*) AS count FROM categorias_gastos")
    if not row or not row["count"]:
        for name, description in SEED_EXPENSE_CATEGORIES:
            await db.insert(
                "INSERT INTO categorias_gastos (nombre, descripcion) VALUES (?, ?)",
                name,
                description,
            )
        logger.info("seeded_expense_categories count=%s", len(SEED_EXPENSE_CATEGORIES))

    row = await db.fetch_one("SELECT COUNT(*) AS count FROM materiales")
    if not row or not row["count"]:
        for name, category in SEED_MATERIALS:
            await db.insert(
                """
                INSERT INTO materiales (nombre, categoria, precio_ordinario, precio_camion, precio_noche)
                VALUES (?, ?, ?, ?, ?)
                """,
                name,
                category,
                0,
                0,
                0,
            )
        logger.info("seeded_materials count=%s", len(SEED_MATERIALS))


async def initialize(db: Database) -> None:
    await create_tables(db)
    await seed_catalogs(db)
