"""Task and comment schemas."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import Field

from gestion_proyectos.schemas.base import CamelModel

Priority = Literal["Baja", "Media", "Alta"]


class TaskCreate(CamelModel):
    proyecto_id: int = Field(..., gt=0)
    fase_id: int | None = Field(None, gt=0)
    nombre: str = Field(..., min_length=1, max_length=255)
    descripcion: str | None = None
    responsable: int | None = Field(None, gt=0)
    prioridad: Priority = "Media"
    estado: str = Field("Pendiente", max_length=20)
    fecha_limite: date | None = None
    progreso: int = Field(0, ge=0, le=100)


class TaskUpdate(CamelModel):
    fase_id: int | None = Field(None, gt=0)
    nombre: str | None = Field(None, min_length=1, max_length=255)
    descripcion: str | None = None
    responsable: int | None = Field(None, gt=0)
    prioridad: Priority | None = None
    estado: str | None = Field(None, max_length=20)
    fecha_limite: date | None = None
    progreso: int | None = Field(None, ge=0, le=100)


class TaskRead(CamelModel):
    id: int
    proyecto_id: int
    fase_id: int | None
    nombre: str
    descripcion: str | None
    responsable: int | None
    prioridad: str
    estado: str
    fecha_limite: date | None
    progreso: int
    created_at: datetime
    updated_at: datetime


class TaskList(CamelModel):
    items: list[TaskRead]


class CommentCreate(CamelModel):
    comentario: str = Field(..., min_length=1, max_length=1000)


class CommentRead(CamelModel):
    id: int
    tarea_id: int
    usuario_id: int | None
    comentario: str
    fecha_comentario: datetime


class CommentList(CamelModel):
    items: list[CommentRead]
