"""Norma document library schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from gestion_proyectos.schemas.base import CamelModel


class NormaRead(CamelModel):
    id: int
    titulo: str
    descripcion: str | None
    etiquetas: str | None
    file_url: str
    mime_type: str
    size_bytes: int
    created_at: datetime
    updated_at: datetime


class NormaPage(CamelModel):
    items: list[NormaRead]
    page: int
    limit: int
    total: int
    total_pages: int


class NormaAttachRequest(CamelModel):
    proyecto_id: int | None = Field(None, ge=1)
    tarea_id: int | None = Field(None, ge=1)


class OkResponse(CamelModel):
    ok: bool = True
