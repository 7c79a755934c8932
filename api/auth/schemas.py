"""
Auth API schemas (request/response models).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    # Clients send camelCase names; Python code uses snake_case.
    model_config = ConfigDict(populate_by_name=True)


class RegisterRequest(_CamelModel):
    nombre: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)
    confirmar_password: str = Field(..., alias="confirmarPassword", max_length=128)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class RefreshRequest(_CamelModel):
    refresh_token: str = Field(..., alias="refreshToken", min_length=1)


class ProfileUpdateRequest(BaseModel):
    nombre: str = Field(..., max_length=100)


class ChangePasswordRequest(_CamelModel):
    password_actual: str = Field(..., alias="passwordActual", min_length=1, max_length=128)
    password_nuevo: str = Field(..., alias="passwordNuevo", min_length=1, max_length=128)
    confirmar_password_nuevo: str = Field(..., alias="confirmarPasswordNuevo", min_length=1, max_length=128)


class UserResponse(BaseModel):
    id: int
    nombre: str
    email: str
    rol: str
    activo: bool | None = None
    fecha_creacion: str | None = None
    fecha_actualizacion: str | None = None
    ultimo_acceso: str | None = None


class AuthResponse(_CamelModel):
    message: str | None = None
    usuario: UserResponse
    token: str
    refresh_token: str = Field(..., alias="refreshToken")
