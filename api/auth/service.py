"""
Auth business logic.

Scope:
- registration, login with lockout after repeated failures
- access/refresh token issuance and verification
- profile and password maintenance
- admin user management and the startup admin seed
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone

from core.config import Settings
from core.db import Database
from core.errors import AuthError, ConstraintViolation, NotFound, ValidationError

from . import repository, schemas, security

logger = logging.getLogger(__name__)

MAX_FAILED_ATTEMPTS = 5
LOCKOUT = timedelta(minutes=30)
MIN_PASSWORD_LENGTH = 6
ADMIN_ROLE = "administrador"

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _utc_now() -> datetime:
    # Stored timestamps are naive UTC.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _parse_timestamp(value: object) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _to_user_response(user_row: dict) -> schemas.UserResponse:
    return schemas.UserResponse(
        id=int(user_row["id"]),
        nombre=str(user_row["nombre"]),
        email=str(user_row["email"]),
        rol=str(user_row["rol"]),
        activo=bool(user_row["activo"]) if user_row.get("activo") is not None else None,
        fecha_creacion=user_row.get("fecha_creacion"),
        fecha_actualizacion=user_row.get("fecha_actualizacion"),
        ultimo_acceso=user_row.get("ultimo_acceso"),
    )


def _auth_response(settings: Settings, user_row: dict, *, message: str | None = None) -> schemas.AuthResponse:
    return schemas.AuthResponse(
        message=message,
        usuario=_to_user_response(user_row),
        token=security.build_access_token(settings, user=user_row),
        refresh_token=security.build_refresh_token(settings, user_id=int(user_row["id"])),
    )


def _check_new_password(password: str, confirmation: str, *, mismatch: str, too_short: str) -> None:
    if password != confirmation:
        raise ValidationError(mismatch)
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(too_short)


async def register(db: Database, settings: Settings, payload: schemas.RegisterRequest) -> schemas.AuthResponse:
    nombre = payload.nombre.strip()
    email = repository.normalize_email(payload.email)
    if not nombre or not email or not payload.password:
        raise ValidationError("Nombre, email y contraseña son requeridos")

    _check_new_password(
        payload.password,
        payload.confirmar_password,
        mismatch="Las contraseñas no coinciden",
        too_short=f"La contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres",
    )
    if not _EMAIL_RE.match(email):
        raise ValidationError("Formato de email inválido")

    existing = await repository.get_user_by_email(db, email)
    if existing is not None:
        raise ConstraintViolation("Ya existe un usuario con este email", constraint="usuarios_email", kind="unique")

    password_hash = security.hash_password(payload.password, rounds=settings.bcrypt_rounds)
    user_row = await repository.create_user(db, nombre=nombre, email=email, password_hash=password_hash)
    logger.info("user_registered id=%s", user_row["id"])
    return _auth_response(settings, user_row, message="Usuario registrado exitosamente")


async def login(db: Database, settings: Settings, payload: schemas.LoginRequest) -> schemas.AuthResponse:
    user_row = await repository.get_user_by_email(db, payload.email)
    if user_row is None:
        raise AuthError("Credenciales inválidas", codigo="CREDENCIALES_INVALIDAS")

    if not user_row.get("activo"):
        raise AuthError("Cuenta desactivada. Contacta al administrador", codigo="CUENTA_DESACTIVADA")

    now = _utc_now()
    locked_until = _parse_timestamp(user_row.get("bloqueado_hasta"))
    if locked_until is not None and now < locked_until:
        raise AuthError(
            "Cuenta temporalmente bloqueada. Intenta más tarde",
            codigo="CUENTA_BLOQUEADA",
            status_code=429,
            bloqueado_hasta=locked_until.isoformat(sep=" "),
        )

    if not security.verify_password(payload.password, str(user_row.get("password_hash") or "")):
        attempts = int(user_row.get("intentos_fallidos") or 0) + 1
        lock = now + LOCKOUT if attempts >= MAX_FAILED_ATTEMPTS else None
        await repository.record_failed_login(db, int(user_row["id"]), attempts=attempts, locked_until=lock)
        if lock is not None:
            logger.warning("user_locked id=%s attempts=%s", user_row["id"], attempts)
        raise AuthError(
            "Credenciales inválidas",
            codigo="CREDENCIALES_INVALIDAS",
            intentos_restantes=max(0, MAX_FAILED_ATTEMPTS - attempts),
        )

    await repository.record_successful_login(db, int(user_row["id"]))
    logger.info("user_logged_in id=%s", user_row["id"])
    return _auth_response(settings, user_row, message="Login exitoso")


async def refresh_tokens(db: Database, settings: Settings, payload: schemas.RefreshRequest) -> schemas.AuthResponse:
    try:
        claims = security.decode_token(settings, payload.refresh_token, expected_type="refresh")
    except security.TokenExpiredError as exc:
        raise AuthError("Refresh token expirado. Inicia sesión nuevamente", codigo="TOKEN_EXPIRADO") from exc
    except security.AuthSecurityError as exc:
        raise AuthError("Refresh token inválido", codigo="TOKEN_INVALIDO") from exc

    user_row = await repository.get_user_by_id(db, int(claims["sub"]))
    if user_row is None or not user_row.get("activo"):
        raise AuthError("Usuario no encontrado o inactivo", codigo="TOKEN_INVALIDO")
    return _auth_response(settings, user_row)


async def get_user_from_access_token(db: Database, settings: Settings, access_token: str) -> dict:
    try:
        claims = security.decode_token(settings, access_token, expected_type="access")
    except security.TokenExpiredError as exc:
        raise AuthError("Token expirado", codigo="TOKEN_EXPIRADO") from exc
    except security.AuthSecurityError as exc:
        raise AuthError("Token inválido", codigo="TOKEN_INVALIDO") from exc

    user_row = await repository.get_user_by_id(db, int(claims["sub"]))
    if user_row is None or not user_row.get("activo"):
        raise AuthError("Usuario no encontrado o inactivo", codigo="TOKEN_INVALIDO")
    return user_row


async def profile(db: Database, current_user: dict) -> schemas.UserResponse:
    user_row = await repository.get_user_by_id(db, int(current_user["id"]))
    if user_row is None:
        raise NotFound("Usuario no encontrado")
    return _to_user_response(user_row)


async def update_profile(db: Database, current_user: dict, payload: schemas.ProfileUpdateRequest) -> schemas.UserResponse:
    nombre = payload.nombre.strip()
    if not nombre:
        raise ValidationError("El nombre es requerido")
    await repository.update_name(db, int(current_user["id"]), nombre)
    return await profile(db, current_user)


async def change_password(
    db: Database,
    settings: Settings,
    current_user: dict,
    payload: schemas.ChangePasswordRequest,
) -> None:
    _check_new_password(
        payload.password_nuevo,
        payload.confirmar_password_nuevo,
        mismatch="Las contraseñas nuevas no coinciden",
        too_short=f"La nueva contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres",
    )

    user_id = int(current_user["id"])
    current_hash = await repository.get_password_hash(db, user_id)
    if not security.verify_password(payload.password_actual, current_hash or ""):
        raise AuthError("Contraseña actual incorrecta", codigo="CREDENCIALES_INVALIDAS")

    new_hash = security.hash_password(payload.password_nuevo, rounds=settings.bcrypt_rounds)
    await repository.update_password_hash(db, user_id, new_hash)
    logger.info("password_changed id=%s", user_id)


async def list_users(db: Database) -> list[schemas.UserResponse]:
    rows = await repository.list_users(db)
    return [_to_user_response(row) for row in rows]


async def toggle_user(db: Database, current_user: dict, user_id: int) -> bool:
    if user_id == int(current_user["id"]):
        raise ValidationError("No puedes desactivar tu propia cuenta")

    user_row = await repository.get_user_by_id(db, user_id)
    if user_row is None:
        raise NotFound("Usuario no encontrado")

    new_state = not bool(user_row.get("activo"))
    await repository.set_active(db, user_id, new_state)
    logger.info("user_toggled id=%s activo=%s by=%s", user_id, new_state, current_user["id"])
    return new_state


async def ensure_admin(db: Database, settings: Settings) -> None:
    """
    Create the configured administrator account when it does not exist yet.
    An existing account is left untouched.
    """
    existing = await repository.get_user_by_email(db, settings.admin_email)
    if existing is not None:
        return None

    password_hash = security.hash_password(settings.admin_password, rounds=settings.bcrypt_rounds)
    user_row = await repository.create_user(
        db,
        nombre=settings.admin_name,
        email=settings.admin_email,
        password_hash=password_hash,
        rol=ADMIN_ROLE,
    )
    logger.info("admin_seeded id=%s email=%s", user_row["id"], user_row["email"])
