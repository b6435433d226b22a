"""Evidence service: uploads, listings, updates and per-evidence norma links."""

from __future__ import annotations

import logging
import math
import os
import re
from dataclasses import dataclass

from sqlalchemy.orm import Session

from gestion_proyectos.config import get_settings
from gestion_proyectos.models import Evidence, EvidenceNormaLink, NormaRepo, Project, Task
from gestion_proyectos.schemas.evidence import EvidenceRead, LinkedNormaRead
from gestion_proyectos.services import storage
from gestion_proyectos.services.grouping import (
    EvidenceGroup,
    build_group_key,
    count_distinct_normas,
    group_evidences,
    group_key_of,
)
from gestion_proyectos.services.severity import DEFAULT_LINK_SEVERITY, Severity

logger = logging.getLogger(__name__)

EVIDENCE_TYPES = ("GENERAL", "INSTITUCIONAL", "TECNICA", "INCUMPLIMIENTO", "PORTADA")
MAX_FILES_PER_UPLOAD = 20

_PORTADA_TAG_RE = re.compile(r"^\s*\[PORTADA\]", re.IGNORECASE)
_INSTITUTIONAL_RE = re.compile(r"\b(institu\w*|portada)\b")
_TECHNICAL_RE = re.compile(r"\b(tecni\w*|detalle|close(up)?|macro)\b")
_NON_COMPLIANCE_RE = re.compile(r"\b(incumpl\w*|falla|no conform\w*|defecto|riesgo)\b")


# ── Errors ───────────────────────────────────────────────────────────


class EvidenceUploadError(ValueError):
    """Upload rejected before anything was stored (caller returns 400)."""

    pass


class DuplicateEvidenceError(ValueError):
    """Same file already uploaded to the same group (caller returns 409)."""

    def __init__(self, duplicate_id: int) -> None:
        super().__init__("Duplicado detectado")
        self.duplicate_id = duplicate_id


class EvidenceNotFoundError(LookupError):
    pass


class NormaNotFoundError(LookupError):
    pass


# ── Helpers ──────────────────────────────────────────────────────────


@dataclass
class UploadedImage:
    filename: str
    content_type: str | None
    content: bytes


def detect_evidence_type(
    filename: str | None, provided: str | None, comentario: str | None
) -> str:
    """Evidence type from an explicit value, else from filename/comment keywords."""
    if provided:
        tipo = provided.strip().upper()
        if tipo not in EVIDENCE_TYPES:
            raise EvidenceUploadError(f"Tipo de evidencia inválido: {provided}")
        return tipo
    comment = (comentario or "").lower()
    name = (filename or "").lower()
    if _PORTADA_TAG_RE.match(comment):
        return "PORTADA"

    def mentions(pattern: re.Pattern[str]) -> bool:
        return bool(pattern.search(name) or pattern.search(comment))

    if mentions(_INSTITUTIONAL_RE) or comment.lstrip().startswith("[inst"):
        return "INSTITUCIONAL"
    if mentions(_TECHNICAL_RE):
        return "TECNICA"
    if mentions(_NON_COMPLIANCE_RE):
        return "INCUMPLIMIENTO"
    return "GENERAL"


def to_read(evidence: Evidence, duplicate_of: int | None = None) -> EvidenceRead:
    return EvidenceRead(
        id=evidence.id,
        proyecto_id=evidence.proyecto_id,
        tarea_id=evidence.tarea_id,
        categoria=evidence.categoria,
        tipo=evidence.evidence_type,
        comentario=evidence.comentario,
        image_url=storage.public_url(evidence.image_path),
        mime_type=evidence.mime_type,
        size_bytes=evidence.size_bytes,
        created_by=evidence.created_by,
        created_at=evidence.created_at,
        updated_at=evidence.updated_at,
        group_key=group_key_of(evidence),
        duplicate=duplicate_of is not None,
        duplicate_id=duplicate_of,
    )


def to_linked_read(link: EvidenceNormaLink, norma: NormaRepo) -> LinkedNormaRead:
    return LinkedNormaRead(
        id=norma.id,
        titulo=norma.titulo,
        descripcion=norma.descripcion,
        categoria=norma.categoria,
        fuente=norma.fuente,
        clasificacion=link.clasificacion,
        observacion=link.observacion,
    )


def _validate_image(image: UploadedImage) -> str:
    extension = storage.IMAGE_EXTENSIONS.get((image.content_type or "").lower())
    if extension is None:
        raise EvidenceUploadError("Tipo de imagen no permitido (jpeg/png/webp)")
    settings = get_settings()
    if len(image.content) > settings.max_upload_bytes:
        raise EvidenceUploadError(
            f"Archivo demasiado grande (límite {settings.max_upload_mb}MB)"
        )
    if not image.content:
        raise EvidenceUploadError("Archivo vacío")
    return extension


def _check_project_task(db: Session, proyecto_id: int, tarea_id: int | None) -> None:
    if db.query(Project.id).filter(Project.id == proyecto_id).first() is None:
        raise EvidenceUploadError("Proyecto inválido")
    if tarea_id:
        task = db.query(Task).filter(Task.id == tarea_id).first()
        if task is None or task.proyecto_id != proyecto_id:
            raise EvidenceUploadError("La tarea no pertenece al proyecto")


def _find_duplicate(db: Session, group_key: str, file_hash: str) -> int | None:
    row = (
        db.query(Evidence.id)
        .filter(Evidence.group_key == group_key, Evidence.file_hash == file_hash)
        .first()
    )
    return row[0] if row else None


# ── Upload ───────────────────────────────────────────────────────────


def create_evidence(
    db: Session,
    *,
    proyecto_id: int,
    image: UploadedImage,
    tarea_id: int | None = None,
    categoria: Severity | None = None,
    comentario: str | None = None,
    evidence_type: str | None = None,
    created_by: int | None = None,
) -> Evidence:
    """Store one uploaded image and insert its evidence row.

    Raises EvidenceUploadError for invalid input and DuplicateEvidenceError when
    the same file already belongs to the same group.
    """
    extension = _validate_image(image)
    _check_project_task(db, proyecto_id, tarea_id)
    tipo = detect_evidence_type(image.filename, evidence_type, comentario)
    group_key = build_group_key(tarea_id, comentario)
    file_hash = storage.sha256_hex(image.content)

    duplicate_id = _find_duplicate(db, group_key, file_hash)
    if duplicate_id is not None:
        raise DuplicateEvidenceError(duplicate_id)

    image_path = storage.save_upload(image.content, "evidencias", extension)
    evidence = Evidence(
        proyecto_id=proyecto_id,
        tarea_id=tarea_id or None,
        categoria=(categoria or Severity.OK).value,
        evidence_type=tipo,
        comentario=comentario or None,
        image_path=image_path,
        file_hash=file_hash,
        mime_type=image.content_type,
        size_bytes=len(image.content),
        created_by=created_by,
        group_key=group_key,
    )
    db.add(evidence)
    db.commit()
    db.refresh(evidence)
    logger.info("Evidence %s stored in group %r", evidence.id, group_key)
    return evidence


def create_evidences(
    db: Session,
    *,
    proyecto_id: int,
    images: list[UploadedImage],
    tarea_id: int | None = None,
    categoria: Severity | None = None,
    comentario: str | None = None,
    evidence_type: str | None = None,
    created_by: int | None = None,
) -> tuple[list[EvidenceRead], str]:
    """Upload several images sharing task and comment.

    Duplicates are reported per item (``duplicate=True`` with the existing row)
    instead of failing the whole batch.
    """
    if not images:
        raise EvidenceUploadError("Archivos requeridos")
    if len(images) > MAX_FILES_PER_UPLOAD:
        raise EvidenceUploadError(f"Máximo {MAX_FILES_PER_UPLOAD} archivos por carga")
    for image in images:
        _validate_image(image)
    _check_project_task(db, proyecto_id, tarea_id)

    items: list[EvidenceRead] = []
    for image in images:
        try:
            evidence = create_evidence(
                db,
                proyecto_id=proyecto_id,
                image=image,
                tarea_id=tarea_id,
                categoria=categoria,
                comentario=comentario,
                evidence_type=evidence_type,
                created_by=created_by,
            )
        except DuplicateEvidenceError as e:
            existing = db.get(Evidence, e.duplicate_id)
            items.append(to_read(existing, duplicate_of=e.duplicate_id))
            continue
        items.append(to_read(evidence))
    return items, build_group_key(tarea_id, comentario)


# ── Queries ──────────────────────────────────────────────────────────


def _filtered(
    db: Session,
    proyecto_id: int,
    tarea_id: int | None = None,
    categoria: str | None = None,
    tipo: str | None = None,
):
    query = db.query(Evidence).filter(Evidence.proyecto_id == proyecto_id)
    if tarea_id:
        query = query.filter(Evidence.tarea_id == tarea_id)
    if categoria:
        query = query.filter(Evidence.categoria == categoria)
    if tipo:
        query = query.filter(Evidence.evidence_type == tipo)
    return query


def list_evidences(
    db: Session,
    proyecto_id: int,
    *,
    tarea_id: int | None = None,
    categoria: str | None = None,
    tipo: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[EvidenceRead], int, int]:
    """Flat, newest-first page. Returns (items, total, total_pages)."""
    query = _filtered(db, proyecto_id, tarea_id, categoria, tipo)
    total = query.count()
    rows = (
        query.order_by(Evidence.created_at.desc(), Evidence.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    total_pages = max(1, math.ceil(total / limit))
    return [to_read(r) for r in rows], total, total_pages


def _attach_norma_counts(db: Session, groups: list[EvidenceGroup]) -> None:
    ids = [i for g in groups for i in g.evidencia_ids]
    if not ids:
        return
    links = (
        db.query(EvidenceNormaLink.evidencia_id, EvidenceNormaLink.norma_repo_id)
        .filter(EvidenceNormaLink.evidencia_id.in_(ids))
        .all()
    )
    count_distinct_normas(groups, links)


def list_groups(
    db: Session,
    proyecto_id: int,
    *,
    tarea_id: int | None = None,
    categoria: str | None = None,
    tipo: str | None = None,
) -> list[EvidenceGroup]:
    """Grouped view (institutional evidence excluded) with ``normas_count``."""
    rows = (
        _filtered(db, proyecto_id, tarea_id, categoria, tipo)
        .order_by(Evidence.created_at.desc(), Evidence.id.desc())
        .all()
    )
    groups = group_evidences(rows, image_url=storage.public_url)
    _attach_norma_counts(db, groups)
    return groups


def list_groups_by_type(
    db: Session, proyecto_id: int, *, tarea_id: int | None = None
) -> list[tuple[str, list[EvidenceGroup]]]:
    """Groups bucketed by evidence type, four previews each."""
    rows = (
        _filtered(db, proyecto_id, tarea_id)
        .order_by(Evidence.created_at.desc(), Evidence.id.desc())
        .all()
    )
    by_type: dict[str, list[Evidence]] = {}
    for row in rows:
        by_type.setdefault(row.evidence_type or "GENERAL", []).append(row)
    result = []
    for tipo, typed_rows in by_type.items():
        groups = group_evidences(typed_rows, image_url=storage.public_url, max_images=4)
        _attach_norma_counts(db, groups)
        result.append((tipo, groups))
    return result


def get_evidence(db: Session, evidence_id: int) -> Evidence | None:
    return db.query(Evidence).filter(Evidence.id == evidence_id).first()


def update_evidence(
    db: Session,
    evidence_id: int,
    categoria: Severity | None = None,
    comentario: str | None = None,
) -> Evidence | None:
    """Coalesce update: only non-empty values overwrite. Group key follows the comment."""
    evidence = get_evidence(db, evidence_id)
    if evidence is None:
        return None
    if categoria:
        evidence.categoria = categoria.value
    if comentario:
        evidence.comentario = comentario.strip()
        evidence.group_key = build_group_key(evidence.tarea_id, evidence.comentario)
    db.commit()
    db.refresh(evidence)
    return evidence


def delete_evidence(db: Session, evidence_id: int) -> bool:
    """Delete one evidence row, its links, and its file (best-effort)."""
    evidence = get_evidence(db, evidence_id)
    if evidence is None:
        return False
    image_path = evidence.image_path
    db.query(EvidenceNormaLink).filter(EvidenceNormaLink.evidencia_id == evidence_id).delete(
        synchronize_session=False
    )
    db.delete(evidence)
    db.commit()
    try:
        storage.remove_file(image_path)
    except OSError as e:
        logger.warning("Could not remove evidence file %s: %s", image_path, e)
    return True


# ── Evidence ↔ norma links ───────────────────────────────────────────


def upsert_link(
    db: Session,
    evidence_id: int,
    norma_repo_id: int,
    clasificacion: Severity | None = None,
    observacion: str | None = None,
) -> EvidenceNormaLink:
    """Insert or update the (evidence, norma) link without committing.

    New links default to LEVE; existing links only take supplied values.
    """
    link = db.get(EvidenceNormaLink, (evidence_id, norma_repo_id))
    if link is None:
        link = EvidenceNormaLink(
            evidencia_id=evidence_id,
            norma_repo_id=norma_repo_id,
            clasificacion=(clasificacion or DEFAULT_LINK_SEVERITY).value,
            observacion=observacion or None,
        )
        db.add(link)
    else:
        if clasificacion:
            link.clasificacion = clasificacion.value
        if observacion:
            link.observacion = observacion
    db.flush()
    return link


def list_evidence_normas(db: Session, evidence_id: int) -> list[LinkedNormaRead]:
    rows = (
        db.query(EvidenceNormaLink, NormaRepo)
        .join(NormaRepo, NormaRepo.id == EvidenceNormaLink.norma_repo_id)
        .filter(EvidenceNormaLink.evidencia_id == evidence_id)
        .order_by(NormaRepo.categoria, NormaRepo.titulo)
        .all()
    )
    return [to_linked_read(link, norma) for link, norma in rows]


def attach_norma(
    db: Session,
    evidence_id: int,
    norma_repo_id: int,
    clasificacion: Severity | None = None,
    observacion: str | None = None,
) -> LinkedNormaRead:
    """Link a catalog entry to one evidence row and return the joined link."""
    if get_evidence(db, evidence_id) is None:
        raise EvidenceNotFoundError("Evidencia no encontrada")
    norma = db.get(NormaRepo, norma_repo_id)
    if norma is None:
        raise NormaNotFoundError("Norma de repositorio no encontrada")
    link = upsert_link(db, evidence_id, norma_repo_id, clasificacion, observacion)
    db.commit()
    db.refresh(link)
    return to_linked_read(link, norma)


def detach_norma(db: Session, evidence_id: int, norma_repo_id: int) -> int:
    """Remove the link if present. Returns the number of rows removed."""
    removed = (
        db.query(EvidenceNormaLink)
        .filter(
            EvidenceNormaLink.evidencia_id == evidence_id,
            EvidenceNormaLink.norma_repo_id == norma_repo_id,
        )
        .delete(synchronize_session=False)
    )
    db.commit()
    return removed


def image_abspath(evidence: Evidence) -> str | None:
    """Absolute file path of an evidence image, or None when the file is gone."""
    path = storage.absolute_path(evidence.image_path)
    return path if os.path.exists(path) else None
