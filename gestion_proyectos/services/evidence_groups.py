"""Group-level operations: resolve a group key and apply norma links to every member.

Group-wide mutations are best-effort per evidence row. Each row is committed
on its own; a failing row is rolled back, recorded in the BatchResult and
logged, and the loop continues.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gestion_proyectos.models import Evidence, EvidenceNormaLink, NormaRepo
from gestion_proyectos.schemas.evidence import LinkedNormaRead
from gestion_proyectos.services import storage
from gestion_proyectos.services.batch import BatchResult
from gestion_proyectos.services.evidence import NormaNotFoundError, to_linked_read, upsert_link
from gestion_proyectos.services.grouping import build_group_key, parse_group_key
from gestion_proyectos.services.severity import DEFAULT_LINK_SEVERITY, Severity, max_severity

logger = logging.getLogger(__name__)


def resolve_group(db: Session, group_key: str) -> list[Evidence]:
    """Evidence rows of a group, oldest first.

    Rows carrying the stored key are matched directly; rows without a stored
    key are matched by recomputing it.
    """
    rows = db.query(Evidence).filter(Evidence.group_key == group_key).all()
    parsed = parse_group_key(group_key)
    if parsed is not None:
        tarea_id, _ = parsed
        legacy = db.query(Evidence).filter(Evidence.group_key.is_(None))
        if tarea_id is None:
            legacy = legacy.filter(Evidence.tarea_id.is_(None))
        else:
            legacy = legacy.filter(Evidence.tarea_id == tarea_id)
        rows.extend(
            r for r in legacy.all() if build_group_key(r.tarea_id, r.comentario) == group_key
        )
    rows.sort(key=lambda r: (r.created_at, r.id))
    return rows


def list_group_normas(db: Session, group_key: str) -> list[LinkedNormaRead]:
    """Distinct catalog entries linked anywhere in the group.

    A norma reached through several evidence rows appears once, with the
    highest classification among its links.
    """
    ids = [e.id for e in resolve_group(db, group_key)]
    if not ids:
        return []
    rows = (
        db.query(EvidenceNormaLink, NormaRepo)
        .join(NormaRepo, NormaRepo.id == EvidenceNormaLink.norma_repo_id)
        .filter(EvidenceNormaLink.evidencia_id.in_(ids))
        .order_by(NormaRepo.categoria, NormaRepo.titulo, EvidenceNormaLink.evidencia_id)
        .all()
    )
    merged: dict[int, LinkedNormaRead] = {}
    for link, norma in rows:
        current = merged.get(norma.id)
        if current is None:
            merged[norma.id] = to_linked_read(link, norma)
            continue
        best = max_severity(
            Severity.parse(current.clasificacion, DEFAULT_LINK_SEVERITY),
            Severity.parse(link.clasificacion, DEFAULT_LINK_SEVERITY),
        )
        current.clasificacion = best.value
    return list(merged.values())


def attach_norma_to_group(
    db: Session,
    group_key: str,
    norma_repo_id: int,
    clasificacion: Severity | None = None,
    observacion: str | None = None,
) -> BatchResult | None:
    """Upsert the link on every evidence row of the group.

    Returns None when the group has no rows. Raises NormaNotFoundError when
    the catalog entry does not exist.
    """
    evidences = resolve_group(db, group_key)
    if not evidences:
        return None
    if db.get(NormaRepo, norma_repo_id) is None:
        raise NormaNotFoundError("Norma de repositorio no encontrada")

    result = BatchResult(operation=f"attach norma {norma_repo_id} to group {group_key!r}")
    for evidence_id in [e.id for e in evidences]:
        try:
            upsert_link(db, evidence_id, norma_repo_id, clasificacion, observacion)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            result.failure(evidence_id, e)
            continue
        result.success(evidence_id)
    logger.info(
        "Attached norma %s to group %r: %d applied, %d failed",
        norma_repo_id,
        group_key,
        result.applied,
        result.failed,
    )
    return result


def detach_norma_from_group(
    db: Session, group_key: str, norma_repo_id: int
) -> BatchResult | None:
    """Delete the link for every evidence row of the group. Missing links are fine."""
    evidences = resolve_group(db, group_key)
    if not evidences:
        return None
    result = BatchResult(operation=f"detach norma {norma_repo_id} from group {group_key!r}")
    for evidence_id in [e.id for e in evidences]:
        try:
            db.query(EvidenceNormaLink).filter(
                EvidenceNormaLink.evidencia_id == evidence_id,
                EvidenceNormaLink.norma_repo_id == norma_repo_id,
            ).delete(synchronize_session=False)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            result.failure(evidence_id, e)
            continue
        result.success(evidence_id)
    return result


def delete_group(db: Session, group_key: str) -> BatchResult | None:
    """Delete links, then evidence rows, then image files (best-effort).

    The returned BatchResult tracks file removal; database deletes either all
    succeed or raise.
    """
    evidences = resolve_group(db, group_key)
    if not evidences:
        return None
    ids = [e.id for e in evidences]
    paths = [e.image_path for e in evidences if e.image_path]

    db.query(EvidenceNormaLink).filter(EvidenceNormaLink.evidencia_id.in_(ids)).delete(
        synchronize_session=False
    )
    db.query(Evidence).filter(Evidence.id.in_(ids)).delete(synchronize_session=False)
    db.commit()
    db.expire_all()

    files = BatchResult(operation=f"remove files of group {group_key!r}")
    for path in paths:
        try:
            storage.remove_file(path)
        except OSError as e:
            files.failure(path, e)
            continue
        files.success(path)
    logger.info("Deleted group %r (%d evidence rows)", group_key, len(ids))
    return files
