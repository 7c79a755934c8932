"""
Pydantic schemas for sales endpoints.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from core.query import MAX_ID
from core.responses import Pagination


class SaleCreate(BaseModel):
    material_id: int = Field(..., gt=0, le=MAX_ID)
    fecha: date
    kilos: Decimal = Field(..., gt=0)
    precio_kilo: Decimal = Field(..., gt=0)
    cliente: str | None = Field(default=None, max_length=100)
    observaciones: str | None = None


class SaleUpdate(BaseModel):
    material_id: int | None = Field(default=None, gt=0, le=MAX_ID)
    fecha: date | None = None
    kilos: Decimal | None = Field(default=None, gt=0)
    precio_kilo: Decimal | None = Field(default=None, gt=0)
    cliente: str | None = Field(default=None, max_length=100)
    observaciones: str | None = None


class Sale(BaseModel):
    id: int
    material_id: int
    material_nombre: str
    material_categoria: str
    fecha: str
    kilos: float
    precio_kilo: float
    total_pesos: float
    cliente: str | None = None
    observaciones: str | None = None
    fecha_creacion: str | None = None


class SalePage(BaseModel):
    ventas: list[Sale]
    paginacion: Pagination
