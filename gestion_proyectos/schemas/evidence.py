"""Evidence, evidence group and evidence↔norma link schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from gestion_proyectos.schemas.base import CamelModel
from gestion_proyectos.services.severity import Severity


class EvidenceRead(CamelModel):
    """Schema for a single evidence item (response)."""

    id: int
    proyecto_id: int
    tarea_id: int | None
    categoria: str
    tipo: str
    comentario: str | None
    image_url: str
    mime_type: str | None
    size_bytes: int | None
    created_by: int | None
    created_at: datetime
    updated_at: datetime
    group_key: str
    duplicate: bool = False
    duplicate_id: int | None = None


class EvidencePage(CamelModel):
    items: list[EvidenceRead]
    page: int
    limit: int
    total: int
    total_pages: int


class EvidenceUpdate(CamelModel):
    """PATCH body. Omitted or empty fields keep their current value."""

    categoria: Severity | None = None
    comentario: str | None = Field(None, max_length=1000)


class MultiUploadResponse(CamelModel):
    items: list[EvidenceRead]
    group_key: str


class GroupItemsResponse(CamelModel):
    group_key: str
    items: list[EvidenceRead]


class EvidenceGroupRead(CamelModel):
    group_key: str
    proyecto_id: int | None
    tarea_id: int | None
    comentario: str
    tipo: str | None
    categoria: str | None
    evidencia_ids: list[int]
    images: list[str]
    count: int
    normas_count: int
    last_created_at: datetime | None


class EvidenceGroupList(CamelModel):
    items: list[EvidenceGroupRead]
    total: int
    page: int = 1
    limit: int
    total_pages: int = 1


class EvidenceTypeGroups(CamelModel):
    tipo: str
    groups: list[EvidenceGroupRead]


class EvidenceTypeGroupList(CamelModel):
    items: list[EvidenceTypeGroups]


class NormaLinkRequest(CamelModel):
    """Attach body: ``{normaRepoId, clasificacion?, observacion?}``."""

    norma_repo_id: int = Field(..., gt=0)
    clasificacion: Severity | None = None
    observacion: str | None = Field(None, max_length=1000)


class LinkedNormaRead(CamelModel):
    """A catalog entry joined with its link classification."""

    id: int
    titulo: str
    descripcion: str | None
    categoria: str | None
    fuente: str | None
    clasificacion: str
    observacion: str | None


class LinkedNormaList(CamelModel):
    items: list[LinkedNormaRead]


class GroupAttachResponse(CamelModel):
    ok: bool
    applied: int
    failed: int
