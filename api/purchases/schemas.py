"""
Pydantic schemas for purchase endpoints.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from core.query import MAX_ID
from core.responses import Pagination

Tariff = Literal["ordinario", "camion", "noche"]


class GeneralPurchaseCreate(BaseModel):
    fecha: date
    total_pesos: Decimal = Field(..., gt=0)
    tipo_precio: Tariff
    cliente: str | None = Field(default=None, max_length=100)
    observaciones: str | None = None


class GeneralPurchaseUpdate(BaseModel):
    fecha: date | None = None
    total_pesos: Decimal | None = Field(default=None, gt=0)
    tipo_precio: Tariff | None = None
    cliente: str | None = Field(default=None, max_length=100)
    observaciones: str | None = None


class MaterialPurchaseCreate(BaseModel):
    material_id: int = Field(..., gt=0, le=MAX_ID)
    fecha: date
    kilos: Decimal = Field(..., gt=0)
    precio_kilo: Decimal = Field(..., gt=0)
    tipo_precio: Tariff
    cliente: str | None = Field(default=None, max_length=100)
    observaciones: str | None = None


class MaterialPurchaseUpdate(BaseModel):
    material_id: int | None = Field(default=None, gt=0, le=MAX_ID)
    fecha: date | None = None
    kilos: Decimal | None = Field(default=None, gt=0)
    precio_kilo: Decimal | None = Field(default=None, gt=0)
    tipo_precio: Tariff | None = None
    cliente: str | None = Field(default=None, max_length=100)
    observaciones: str | None = None


class GeneralPurchase(BaseModel):
    id: int
    fecha: str
    total_pesos: float
    tipo_precio: str
    cliente: str | None = None
    observaciones: str | None = None
    fecha_creacion: str | None = None


class MaterialPurchase(BaseModel):
    id: int
    material_id: int
    material_nombre: str
    material_categoria: str
    fecha: str
    kilos: float
    precio_kilo: float
    total_pesos: float
    tipo_precio: str
    cliente: str | None = None
    observaciones: str | None = None
    fecha_creacion: str | None = None


class GeneralPurchasePage(BaseModel):
    compras: list[GeneralPurchase]
    paginacion: Pagination


class MaterialPurchasePage(BaseModel):
    compras: list[MaterialPurchase]
    paginacion: Pagination
