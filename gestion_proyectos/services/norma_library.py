"""Norma document library: reference PDFs and texts linked to projects and tasks."""

from __future__ import annotations

import io
import logging
import math

from pypdf import PdfReader
from pypdf.errors import PyPdfError
from sqlalchemy import or_
from sqlalchemy.orm import Session

from gestion_proyectos.config import get_settings
from gestion_proyectos.models import Norma, Project, ProjectNorma, Task, TaskNorma
from gestion_proyectos.schemas.norma import NormaRead
from gestion_proyectos.services import storage

logger = logging.getLogger(__name__)

ENTITY = "normas"
DOCUMENT_EXTENSIONS = {
    "application/pdf": ".pdf",
    "text/plain": ".txt",
}
TEXT_LIMIT = 100_000
PDF_TEXT_LIMIT = 200_000


class NormaLibraryError(ValueError):
    """Rejected upload or link request (caller returns 400)."""

    pass


# ── Helpers ──────────────────────────────────────────────────────────


def to_read(norma: Norma) -> NormaRead:
    return NormaRead(
        id=norma.id,
        titulo=norma.titulo,
        descripcion=norma.descripcion,
        etiquetas=norma.etiquetas,
        file_url=storage.public_url(norma.file_path),
        mime_type=norma.mime_type,
        size_bytes=norma.size_bytes,
        created_at=norma.created_at,
        updated_at=norma.updated_at,
    )


def extract_text(content: bytes, mime_type: str) -> str | None:
    """Searchable text of a document, or None when nothing could be read."""
    try:
        if mime_type == "text/plain":
            text = content.decode("utf-8", errors="replace")[:TEXT_LIMIT]
        elif mime_type == "application/pdf":
            reader = PdfReader(io.BytesIO(content))
            text = "\n".join(page.extract_text() or "" for page in reader.pages)[:PDF_TEXT_LIMIT]
        else:
            return None
    except (PyPdfError, ValueError, KeyError, OSError) as e:
        logger.warning("Text extraction failed (%s): %s", mime_type, e)
        return None
    return text or None


def _optional(value: str | None) -> str | None:
    text = (value or "").strip()
    return text or None


def _check_targets(db: Session, proyecto_id: int | None, tarea_id: int | None) -> None:
    if proyecto_id and db.get(Project, proyecto_id) is None:
        raise NormaLibraryError("Proyecto inválido")
    if tarea_id and db.get(Task, tarea_id) is None:
        raise NormaLibraryError("Tarea inválida")


def _link(db: Session, norma_id: int, proyecto_id: int | None, tarea_id: int | None) -> None:
    """Insert-or-ignore the requested links without committing."""
    if proyecto_id and db.get(ProjectNorma, (proyecto_id, norma_id)) is None:
        db.add(ProjectNorma(proyecto_id=proyecto_id, norma_id=norma_id))
    if tarea_id and db.get(TaskNorma, (tarea_id, norma_id)) is None:
        db.add(TaskNorma(tarea_id=tarea_id, norma_id=norma_id))
    db.flush()


# ── Upload ───────────────────────────────────────────────────────────


def upload_norma(
    db: Session,
    *,
    titulo: str,
    filename: str | None,
    content_type: str | None,
    content: bytes | None,
    descripcion: str | None = None,
    etiquetas: str | None = None,
    proyecto_id: int | None = None,
    tarea_id: int | None = None,
) -> Norma:
    """Store a PDF/TXT document, extract its text and create the optional links.

    Raises NormaLibraryError when the file is missing or not allowed, or when
    the project or task does not exist.
    """
    if not content:
        raise NormaLibraryError("Archivo requerido")
    mime_type = (content_type or "").lower()
    extension = DOCUMENT_EXTENSIONS.get(mime_type)
    if extension is None:
        raise NormaLibraryError("Tipo de archivo no permitido (solo PDF o TXT)")
    settings = get_settings()
    if len(content) > settings.max_norma_bytes:
        raise NormaLibraryError(f"Archivo demasiado grande (límite {settings.max_norma_mb}MB)")
    titulo = (titulo or "").strip()
    if not titulo:
        raise NormaLibraryError("Título requerido")
    _check_targets(db, proyecto_id, tarea_id)

    file_path = storage.save_upload(content, ENTITY, extension)
    norma = Norma(
        titulo=titulo,
        descripcion=_optional(descripcion),
        etiquetas=_optional(etiquetas),
        file_path=file_path,
        file_name=filename,
        mime_type=mime_type,
        size_bytes=len(content),
        texto_extraido=extract_text(content, mime_type),
    )
    db.add(norma)
    db.flush()
    _link(db, norma.id, proyecto_id, tarea_id)
    db.commit()
    db.refresh(norma)
    logger.info("Norma document %s stored (%s, %d bytes)", norma.id, mime_type, norma.size_bytes)
    return norma


# ── Queries ──────────────────────────────────────────────────────────


def get_norma(db: Session, norma_id: int) -> Norma | None:
    return db.query(Norma).filter(Norma.id == norma_id).first()


def list_normas(
    db: Session, *, search: str | None = None, page: int = 1, limit: int = 20
) -> tuple[list[Norma], int, int]:
    """Newest-first page. Returns (items, total, total_pages)."""
    query = db.query(Norma)
    search = (search or "").strip()
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                Norma.titulo.like(pattern),
                Norma.descripcion.like(pattern),
                Norma.etiquetas.like(pattern),
                Norma.texto_extraido.like(pattern),
            )
        )
    total = query.count()
    rows = (
        query.order_by(Norma.created_at.desc(), Norma.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total, max(1, math.ceil(total / limit))


def normas_for_project(db: Session, proyecto_id: int) -> list[Norma]:
    return (
        db.query(Norma)
        .join(ProjectNorma, ProjectNorma.norma_id == Norma.id)
        .filter(ProjectNorma.proyecto_id == proyecto_id)
        .order_by(Norma.created_at.desc(), Norma.id.desc())
        .all()
    )


def normas_for_task(db: Session, tarea_id: int) -> list[Norma]:
    return (
        db.query(Norma)
        .join(TaskNorma, TaskNorma.norma_id == Norma.id)
        .filter(TaskNorma.tarea_id == tarea_id)
        .order_by(Norma.created_at.desc(), Norma.id.desc())
        .all()
    )


# ── Links ────────────────────────────────────────────────────────────


def _require_target(proyecto_id: int | None, tarea_id: int | None) -> None:
    if not proyecto_id and not tarea_id:
        raise NormaLibraryError("proyectoId o tareaId requerido")


def attach_norma(
    db: Session, norma_id: int, proyecto_id: int | None = None, tarea_id: int | None = None
) -> bool:
    """Link a document to a project and/or task. False when the document is missing."""
    _require_target(proyecto_id, tarea_id)
    if get_norma(db, norma_id) is None:
        return False
    _check_targets(db, proyecto_id, tarea_id)
    _link(db, norma_id, proyecto_id, tarea_id)
    db.commit()
    return True


def detach_norma(
    db: Session, norma_id: int, proyecto_id: int | None = None, tarea_id: int | None = None
) -> bool:
    """Remove the requested links if present. False when the document is missing."""
    _require_target(proyecto_id, tarea_id)
    if get_norma(db, norma_id) is None:
        return False
    if proyecto_id:
        db.query(ProjectNorma).filter(
            ProjectNorma.proyecto_id == proyecto_id, ProjectNorma.norma_id == norma_id
        ).delete(synchronize_session=False)
    if tarea_id:
        db.query(TaskNorma).filter(
            TaskNorma.tarea_id == tarea_id, TaskNorma.norma_id == norma_id
        ).delete(synchronize_session=False)
    db.commit()
    return True


def delete_norma(db: Session, norma_id: int) -> bool:
    """Delete a document; links cascade and the file is removed best-effort."""
    norma = get_norma(db, norma_id)
    if norma is None:
        return False
    file_path = norma.file_path
    db.delete(norma)
    db.commit()
    try:
        storage.remove_file(file_path)
    except OSError as e:
        logger.warning("Could not remove norma document %s: %s", file_path, e)
    return True
