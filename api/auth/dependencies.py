"""
Auth dependencies for protected FastAPI routes.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from fastapi import Depends, Header, status

from core.config import Settings, get_settings
from core.db import Database, get_db
from core.errors import AuthError

from . import service


def _extract_bearer_token(authorization: str | None) -> str:
    raw = (authorization or "").strip()
    if not raw:
        raise AuthError("Token de acceso requerido", codigo="TOKEN_REQUERIDO")

    parts = raw.split(" ", 1)
    if len(parts) != 2:
        raise AuthError("Formato de token inválido", codigo="TOKEN_INVALIDO")

    scheme, token = parts[0].strip().lower(), parts[1].strip()
    if scheme != "bearer" or not token:
        raise AuthError("Formato de token inválido", codigo="TOKEN_INVALIDO")
    return token


async def get_bearer_token(authorization: str | None = Header(default=None)) -> str:
    return _extract_bearer_token(authorization)


async def get_current_user(
    access_token: str = Depends(get_bearer_token),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> dict:
    return await service.get_user_from_access_token(db, settings, access_token)


def require_role(*roles: str) -> Callable[..., Awaitable[dict]]:
    allowed = list(roles)

    async def dependency(current_user: dict = Depends(get_current_user)) -> dict:
        if allowed and current_user.get("rol") not in allowed:
            raise AuthError(
                "Permisos insuficientes",
                codigo="PERMISOS_INSUFICIENTES",
                status_code=status.HTTP_403_FORBIDDEN,
                rol_requerido=allowed,
                rol_actual=current_user.get("rol"),
            )
        return current_user

    return dependency
