"""
Pydantic schemas for material catalog endpoints.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from core.responses import Pagination


class MaterialCreate(BaseModel):
    nombre: str = Field(..., min_length=1, max_length=100)
    categoria: str = Field(..., min_length=1, max_length=50)
    precio_ordinario: Decimal = Field(default=Decimal("0"), ge=0)
    precio_camion: Decimal = Field(default=Decimal("0"), ge=0)
    precio_noche: Decimal = Field(default=Decimal("0"), ge=0)


class MaterialUpdate(BaseModel):
    nombre: str | None = Field(default=None, min_length=1, max_length=100)
    categoria: str | None = Field(default=None, min_length=1, max_length=50)
    precio_ordinario: Decimal | None = Field(default=None, ge=0)
    precio_camion: Decimal | None = Field(default=None, ge=0)
    precio_noche: Decimal | None = Field(default=None, ge=0)
    activo: bool | None = None


class CategoryPriceUpdate(BaseModel):
    precio_ordinario_incremento: Decimal | None = None
    precio_camion_incremento: Decimal | None = None
    precio_noche_incremento: Decimal | None = None
    tipo_incremento: Literal["porcentaje", "valor_fijo"] = "porcentaje"


class Material(BaseModel):
    id: int
    nombre: str
    categoria: str
    precio_ordinario: float
    precio_camion: float
    precio_noche: float
    activo: bool
    fecha_creacion: str | None = None
    fecha_actualizacion: str | None = None


class MaterialPage(BaseModel):
    materiales: list[Material]
    paginacion: Pagination


class PriceUpdateResult(BaseModel):
    message: str
    materialesActualizados: int
