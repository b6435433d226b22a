"""Norma catalog schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from gestion_proyectos.schemas.base import CamelModel


class NormaRepoBase(CamelModel):
    codigo: str | None = Field(None, max_length=64)
    descripcion: str | None = None
    categoria: str | None = Field(None, max_length=255)
    subcategoria: str | None = Field(None, max_length=255)
    incumplimiento: str | None = None
    severidad: str | None = Field(None, max_length=32)
    etiquetas: str | None = None
    fuente: str | None = Field(None, max_length=255)


class NormaRepoCreate(NormaRepoBase):
    titulo: str = Field(..., min_length=1)


class NormaRepoUpdate(NormaRepoBase):
    """Only supplied, non-empty fields overwrite the stored ones."""

    titulo: str | None = Field(None, min_length=1)


class NormaRepoRead(CamelModel):
    id: int
    codigo: str | None
    titulo: str
    descripcion: str | None
    categoria: str | None
    subcategoria: str | None
    incumplimiento: str | None
    severidad: str | None
    etiquetas: str | None
    fuente: str | None
    created_at: datetime
    updated_at: datetime


class NormaRepoPage(CamelModel):
    items: list[NormaRepoRead]
    page: int
    limit: int
    total: int
    total_pages: int


class ImportResponse(CamelModel):
    ok: bool = True
    created: int
    updated: int
    errors: int
    total: int


class ReferenceImageRead(CamelModel):
    id: int
    norma_repo_id: int
    comentario: str | None
    image_url: str
    thumb_url: str | None
    mime_type: str | None
    size_bytes: int | None
    created_at: datetime


class ReferenceImageList(CamelModel):
    items: list[ReferenceImageRead]
