"""Project and phase schemas."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import Field

from gestion_proyectos.schemas.base import CamelModel

PhaseState = Literal["Pendiente", "En progreso", "Completado"]


class ProjectCreate(CamelModel):
    """Schema for creating a project. ``codigo`` is generated."""

    nombre: str = Field(..., min_length=1, max_length=255)
    cliente: str | None = Field(None, max_length=255)
    cedula_juridica: str | None = Field(None, min_length=9, max_length=20)
    descripcion: str | None = None
    fecha_verificacion: date | None = None
    fecha_inicio: date | None = None
    fecha_fin: date | None = None


class ProjectUpdate(CamelModel):
    """Schema for updating a project (all fields optional)."""

    nombre: str | None = Field(None, min_length=1, max_length=255)
    cliente: str | None = Field(None, max_length=255)
    cedula_juridica: str | None = Field(None, min_length=9, max_length=20)
    descripcion: str | None = None
    estado: str | None = Field(None, max_length=32)
    fecha_verificacion: date | None = None
    fecha_inicio: date | None = None
    fecha_fin: date | None = None


class PhaseRead(CamelModel):
    id: int
    proyecto_id: int
    nombre: str
    orden: int
    estado: str


class PhaseUpdate(CamelModel):
    estado: PhaseState


class ProjectRead(CamelModel):
    """Schema for reading a project (response)."""

    id: int
    codigo: str
    nombre: str
    cliente: str | None
    cedula_juridica: str | None
    descripcion: str | None
    estado: str
    fecha_verificacion: date | None
    fecha_inicio: date | None
    fecha_fin: date | None
    created_by: int | None
    created_at: datetime
    updated_at: datetime
    fases: list[PhaseRead] = []


class ProjectList(CamelModel):
    items: list[ProjectRead]
    total: int
    page: int
    limit: int
