"""
Auth persistence helpers.
"""

from __future__ import annotations

from datetime import datetime

from core.db import Database

_PUBLIC_COLUMNS = "id, nombre, email, rol, activo, fecha_creacion, fecha_actualizacion, ultimo_acceso"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


async def create_user(
    db: Database,
    *,
    nombre: str,
    email: str,
    password_hash: str,
    rol: str = "usuario",
    activo: bool = True,
) -> dict:
    result = await db.insert(
        """
        INSERT INTO usuarios (nombre, email, password_hash, rol, activo)
        VALUES (?, ?, ?, ?, ?)
        """,
        nombre.strip(),
        normalize_email(email),
        password_hash,
        rol,
        activo,
    )
    if result.last_id is None:
        raise RuntimeError("Failed to create user.")

    row = await get_user_by_id(db, result.last_id)
    if row is None:
        raise RuntimeError("Failed to create user.")
    return row


async def get_user_by_email(db: Database, email: str) -> dict | None:
    return await db.fetch_one(
        f"""
        SELECT {_PUBLIC_COLUMNS}, password_hash, intentos_fallidos, bloqueado_hasta
        FROM usuarios
        WHERE email = ?
        """,
        normalize_email(email),
    )


async def get_user_by_id(db: Database, user_id: int) -> dict | None:
    return await db.fetch_one(
        f"""
        SELECT {_PUBLIC_COLUMNS}
        FROM usuarios
        WHERE id = ?
        """,
        user_id,
    )


async def get_password_hash(db: Database, user_id: int) -> str | None:
    row = await db.fetch_one("SELECT password_hash FROM usuarios WHERE id = ?", user_id)
    return str(row["password_hash"]) if row else None


async def record_failed_login(db: Database, user_id: int, *, attempts: int, locked_until: datetime | None) -> None:
    await db.execute(
        """
        UPDATE usuarios
        SET intentos_fallidos = ?, bloqueado_hasta = ?
        WHERE id = ?
        """,
        attempts,
        locked_until,
        user_id,
    )


async def record_successful_login(db: Database, user_id: int) -> None:
    await db.execute(
        """
        UPDATE usuarios
        SET intentos_fallidos = 0, bloqueado_hasta = NULL, ultimo_acceso = CURRENT_TIMESTAMP
        WHERE id = ?
        """,
        user_id,
    )


async def update_name(db: Database, user_id: int, nombre: str) -> None:
    await db.execute(
        """
        UPDATE usuarios
        SET nombre = ?, fecha_actualizacion = CURRENT_TIMESTAMP
        WHERE id = ?
        """,
        nombre,
        user_id,
    )


async def update_password_hash(db: Database, user_id: int, password_hash: str) -> None:
    await db.execute(
        """
        UPDATE usuarios
        SET password_hash = ?, fecha_actualizacion = CURRENT_TIMESTAMP
        WHERE id = ?
        """,
        password_hash,
        user_id,
    )


async def list_users(db: Database) -> list[dict]:
    return await db.fetch_all(
        f"""
        SELECT {_PUBLIC_COLUMNS}
        FROM usuarios
        ORDER BY fecha_creacion DESC, id DESC
        """
    )


async def set_active(db: Database, user_id: int, activo: bool) -> None:
    await db.execute(
        """
        UPDATE usuarios
        SET activo = ?, fecha_actualizacion = CURRENT_TIMESTAMP
        WHERE id = ?
        """,
        activo,
        user_id,
    )
