"""
Auth and user-management API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from core.config import Settings, get_settings
from core.db import Database, get_db
from core.query import RowId
from core.responses import Message

from . import dependencies, schemas, service

router = APIRouter()
users_router = APIRouter()


@router.post("/auth/registro", status_code=status.HTTP_201_CREATED, response_model=schemas.AuthResponse)
async def register(
    payload: schemas.RegisterRequest,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> schemas.AuthResponse:
    return await service.register(db, settings, payload)


@router.post("/auth/login", response_model=schemas.AuthResponse)
async def login(
    payload: schemas.LoginRequest,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> schemas.AuthResponse:
    return await service.login(db, settings, payload)


@router.post("/auth/refresh", response_model=schemas.AuthResponse)
async def refresh(
    payload: schemas.RefreshRequest,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> schemas.AuthResponse:
    return await service.refresh_tokens(db, settings, payload)


@router.get("/auth/perfil")
async def get_profile(
    db: Database = Depends(get_db),
    current_user: dict = Depends(dependencies.get_current_user),
) -> dict:
    user = await service.profile(db, current_user)
    return {"usuario": user.model_dump()}


@router.put("/auth/perfil")
async def update_profile(
    payload: schemas.ProfileUpdateRequest,
    db: Database = Depends(get_db),
    current_user: dict = Depends(dependencies.get_current_user),
) -> dict:
    user = await service.update_profile(db, current_user, payload)
    return {"message": "Perfil actualizado exitosamente", "usuario": user.model_dump()}


@router.put("/auth/cambiar-password", response_model=Message)
async def change_password(
    payload: schemas.ChangePasswordRequest,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: dict = Depends(dependencies.get_current_user),
) -> dict:
    await service.change_password(db, settings, current_user, payload)
    return {"message": "Contraseña actualizada exitosamente"}


@router.post("/auth/logout", response_model=Message)
async def logout(
    _: dict = Depends(dependencies.get_current_user),
) -> dict:
    # Tokens are stateless; the client discards them.
    return {"message": "Logout exitoso"}


@router.get("/auth/verificar")
async def verify(
    current_user: dict = Depends(dependencies.get_current_user),
) -> dict:
    return {
        "valido": True,
        "usuario": {
            "id": current_user["id"],
            "nombre": current_user["nombre"],
            "email": current_user["email"],
            "rol": current_user["rol"],
        },
    }


@users_router.get("/usuarios")
async def list_users(
    db: Database = Depends(get_db),
    _: dict = Depends(dependencies.require_role(service.ADMIN_ROLE)),
) -> list[dict]:
    users = await service.list_users(db)
    return [user.model_dump() for user in users]


@users_router.put("/usuarios/{user_id}/toggle")
async def toggle_user(
    user_id: RowId,
    db: Database = Depends(get_db),
    current_user: dict = Depends(dependencies.require_role(service.ADMIN_ROLE)),
) -> dict:
    activo = await service.toggle_user(db, current_user, user_id)
    estado = "activado" if activo else "desactivado"
    return {"message": f"Usuario {estado} exitosamente", "activo": activo}
