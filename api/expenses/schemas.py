"""
Pydantic schemas for expense and expense-category endpoints.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from core.query import MAX_ID
from core.responses import Pagination


class CategoryCreate(BaseModel):
    nombre: str = Field(..., min_length=1, max_length=50)
    descripcion: str | None = None


class CategoryUpdate(BaseModel):
    nombre: str | None = Field(default=None, min_length=1, max_length=50)
    descripcion: str | None = None
    activo: bool | None = None


class ExpenseCreate(BaseModel):
    categoria_id: int = Field(..., gt=0, le=MAX_ID)
    fecha: date
    concepto: str = Field(..., min_length=1, max_length=200)
    valor: Decimal = Field(..., gt=0)
    observaciones: str | None = None


class ExpenseUpdate(BaseModel):
    categoria_id: int | None = Field(default=None, gt=0, le=MAX_ID)
    fecha: date | None = None
    concepto: str | None = Field(default=None, min_length=1, max_length=200)
    valor: Decimal | None = Field(default=None, gt=0)
    observaciones: str | None = None


class Category(BaseModel):
    id: int
    nombre: str
    descripcion: str | None = None
    activo: bool


class CategoryPage(BaseModel):
    categorias: list[Category]
    paginacion: Pagination


class Expense(BaseModel):
    id: int
    categoria_id: int
    categoria_nombre: str
    categoria_descripcion: str | None = None
    fecha: str
    concepto: str
    valor: float
    observaciones: str | None = None
    fecha_creacion: str | None = None


class ExpensePage(BaseModel):
    gastos: list[Expense]
    paginacion: Pagination
