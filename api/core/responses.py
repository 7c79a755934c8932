"""
Response models shared by the feature packages.
"""

from __future__ import annotations

from pydantic import BaseModel


class Pagination(BaseModel):
    page: int
    pageSize: int
    total: int
    totalPages: int


class Message(BaseModel):
    message: str


class DeleteResult(BaseModel):
    message: str
    accion: str
