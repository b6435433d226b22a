"""Evidence API routes: uploads, listings, groups and norma links.

Group routes take the group key as a ``path`` parameter because normalized
comments may contain slashes. They and the type export are declared before
the ``/{evidence_id}`` routes, and the more specific group routes before the
bare group route.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from gestion_proyectos.api.deps import get_db, require_auth
from gestion_proyectos.api.pdf import render_pdf_response
from gestion_proyectos.schemas.evidence import (
    EvidenceGroupList,
    EvidenceGroupRead,
    EvidencePage,
    EvidenceRead,
    EvidenceTypeGroupList,
    EvidenceTypeGroups,
    EvidenceUpdate,
    GroupAttachResponse,
    GroupItemsResponse,
    LinkedNormaList,
    LinkedNormaRead,
    MultiUploadResponse,
    NormaLinkRequest,
)
from gestion_proyectos.services import evidence as evidence_service
from gestion_proyectos.services import evidence_groups
from gestion_proyectos.services.evidence import (
    DuplicateEvidenceError,
    EvidenceNotFoundError,
    EvidenceUploadError,
    NormaNotFoundError,
    UploadedImage,
)
from gestion_proyectos.services.reports import load_type_export, render_type_export_pdf
from gestion_proyectos.services.reports.formatting import safe_filename
from gestion_proyectos.services.severity import Severity

logger = logging.getLogger(__name__)

router = APIRouter()

GROUP_NOT_FOUND = "Grupo no encontrado"
EVIDENCE_NOT_FOUND = "Evidencia no encontrada"


def _categoria_or_400(value: str | None) -> Severity | None:
    if value is None or not value.strip():
        return None
    categoria = Severity.parse(value)
    if categoria is None:
        raise HTTPException(status_code=400, detail="Categoría inválida")
    return categoria


def _user_id(user) -> int | None:
    return getattr(user, "id", None)


async def _read_upload(file: UploadFile) -> UploadedImage:
    try:
        content = await file.read()
    finally:
        await file.close()
    return UploadedImage(filename=file.filename or "", content_type=file.content_type, content=content)


# ── Upload ───────────────────────────────────────────────────────────


@router.post("/upload", response_model=EvidenceRead, status_code=201)
async def api_upload_evidence(
    file: UploadFile = File(...),
    proyecto_id: int = Form(..., alias="proyectoId"),
    tarea_id: int | None = Form(None, alias="tareaId"),
    categoria: str | None = Form(None),
    comentario: str | None = Form(None),
    evidence_type: str | None = Form(None, alias="evidenceType"),
    db: Session = Depends(get_db),
    user=Depends(require_auth),
):
    """Store one photo. 409 when the same file already exists in the group."""
    image = await _read_upload(file)
    try:
        evidence = evidence_service.create_evidence(
            db,
            proyecto_id=proyecto_id,
            image=image,
            tarea_id=tarea_id,
            categoria=_categoria_or_400(categoria),
            comentario=comentario,
            evidence_type=evidence_type,
            created_by=_user_id(user),
        )
    except DuplicateEvidenceError as e:
        return JSONResponse(
            status_code=409,
            content={"error": "Duplicado detectado", "duplicateId": e.duplicate_id},
        )
    except EvidenceUploadError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return evidence_service.to_read(evidence)


@router.post("/upload-multiple", response_model=MultiUploadResponse, status_code=201)
async def api_upload_evidences(
    files: list[UploadFile] = File(...),
    proyecto_id: int = Form(..., alias="proyectoId"),
    tarea_id: int | None = Form(None, alias="tareaId"),
    categoria: str | None = Form(None),
    comentario: str | None = Form(None),
    evidence_type: str | None = Form(None, alias="evidenceType"),
    db: Session = Depends(get_db),
    user=Depends(require_auth),
) -> MultiUploadResponse:
    """Store several photos sharing task and comment; duplicates are flagged per item."""
    images = [await _read_upload(f) for f in files]
    try:
        items, group_key = evidence_service.create_evidences(
            db,
            proyecto_id=proyecto_id,
            images=images,
            tarea_id=tarea_id,
            categoria=_categoria_or_400(categoria),
            comentario=comentario,
            evidence_type=evidence_type,
            created_by=_user_id(user),
        )
    except EvidenceUploadError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return MultiUploadResponse(items=items, group_key=group_key)


# ── Listings ─────────────────────────────────────────────────────────


@router.get("")
def api_list_evidences(
    proyecto_id: int | None = Query(None, alias="proyectoId"),
    tarea_id: int | None = Query(None, alias="tareaId"),
    categoria: str | None = Query(None),
    tipo: str | None = Query(None),
    group: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
):
    """Flat page of evidence, or the grouped view with ``group=true``."""
    if not proyecto_id:
        raise HTTPException(status_code=400, detail="proyectoId es requerido")
    severity = _categoria_or_400(categoria)
    categoria_value = severity.value if severity else None
    tipo_value = tipo.strip().upper() if tipo and tipo.strip() else None

    if group:
        groups = evidence_service.list_groups(
            db, proyecto_id, tarea_id=tarea_id, categoria=categoria_value, tipo=tipo_value
        )
        return EvidenceGroupList(
            items=[EvidenceGroupRead.model_validate(g) for g in groups],
            total=len(groups),
            limit=len(groups),
        )

    items, total, total_pages = evidence_service.list_evidences(
        db,
        proyecto_id,
        tarea_id=tarea_id,
        categoria=categoria_value,
        tipo=tipo_value,
        page=page,
        limit=limit,
    )
    return EvidencePage(items=items, page=page, limit=limit, total=total, total_pages=total_pages)


@router.get("/by-tipo", response_model=EvidenceTypeGroupList)
def api_list_groups_by_type(
    proyecto_id: int | None = Query(None, alias="proyectoId"),
    tarea_id: int | None = Query(None, alias="tareaId"),
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> EvidenceTypeGroupList:
    if not proyecto_id:
        raise HTTPException(status_code=400, detail="proyectoId es requerido")
    buckets = evidence_service.list_groups_by_type(db, proyecto_id, tarea_id=tarea_id)
    return EvidenceTypeGroupList(
        items=[
            EvidenceTypeGroups(
                tipo=tipo, groups=[EvidenceGroupRead.model_validate(g) for g in groups]
            )
            for tipo, groups in buckets
        ]
    )


@router.get("/export/pdf")
async def api_export_type_pdf(
    request: Request,
    proyecto_id: int = Query(..., alias="proyectoId", ge=1),
    tipo: str = Query(..., min_length=1, max_length=50),
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> Response:
    """Downloadable PDF of one project's evidence of a single type, oldest first."""
    tipo = tipo.strip().upper()
    rows = load_type_export(db, proyecto_id, tipo)
    if not rows:
        raise HTTPException(status_code=404, detail="Sin evidencias para ese tipo")
    filename = safe_filename(f"evidencias_{tipo}_{proyecto_id}", f"evidencias_{proyecto_id}.pdf")
    return await render_pdf_response(
        request, lambda token: render_type_export_pdf(tipo, rows, token), filename, attachment=True
    )


# ── Groups ───────────────────────────────────────────────────────────


@router.get("/groups/{group_key:path}/normas-repo", response_model=LinkedNormaList)
def api_list_group_normas(
    group_key: str,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> LinkedNormaList:
    """Distinct normas of the group, each with its highest classification."""
    return LinkedNormaList(items=evidence_groups.list_group_normas(db, group_key))


@router.post(
    "/groups/{group_key:path}/normas-repo",
    response_model=GroupAttachResponse,
    status_code=201,
)
def api_attach_group_norma(
    group_key: str,
    body: NormaLinkRequest,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> GroupAttachResponse:
    try:
        result = evidence_groups.attach_norma_to_group(
            db, group_key, body.norma_repo_id, body.clasificacion, body.observacion
        )
    except NormaNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    if result is None:
        raise HTTPException(status_code=404, detail=GROUP_NOT_FOUND)
    return GroupAttachResponse(ok=True, applied=result.applied, failed=result.failed)


@router.delete("/groups/{group_key:path}/normas-repo/{norma_repo_id}", status_code=204)
def api_detach_group_norma(
    group_key: str,
    norma_repo_id: int,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> None:
    if evidence_groups.detach_norma_from_group(db, group_key, norma_repo_id) is None:
        raise HTTPException(status_code=404, detail=GROUP_NOT_FOUND)


@router.get("/groups/{group_key:path}", response_model=GroupItemsResponse)
def api_get_group(
    group_key: str,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> GroupItemsResponse:
    rows = evidence_groups.resolve_group(db, group_key)
    if not rows:
        raise HTTPException(status_code=404, detail=GROUP_NOT_FOUND)
    return GroupItemsResponse(
        group_key=group_key, items=[evidence_service.to_read(r) for r in rows]
    )


@router.delete("/groups/{group_key:path}", status_code=204)
def api_delete_group(
    group_key: str,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> None:
    """Delete every member, its links and (best-effort) its file."""
    if evidence_groups.delete_group(db, group_key) is None:
        raise HTTPException(status_code=404, detail=GROUP_NOT_FOUND)


# ── Single evidence ──────────────────────────────────────────────────


@router.get("/{evidence_id}", response_model=EvidenceRead)
def api_get_evidence(
    evidence_id: int,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> EvidenceRead:
    evidence = evidence_service.get_evidence(db, evidence_id)
    if evidence is None:
        raise HTTPException(status_code=404, detail=EVIDENCE_NOT_FOUND)
    return evidence_service.to_read(evidence)


@router.patch("/{evidence_id}", response_model=EvidenceRead)
def api_update_evidence(
    evidence_id: int,
    data: EvidenceUpdate,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> EvidenceRead:
    evidence = evidence_service.update_evidence(db, evidence_id, data.categoria, data.comentario)
    if evidence is None:
        raise HTTPException(status_code=404, detail=EVIDENCE_NOT_FOUND)
    return evidence_service.to_read(evidence)


@router.delete("/{evidence_id}", status_code=204)
def api_delete_evidence(
    evidence_id: int,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> None:
    if not evidence_service.delete_evidence(db, evidence_id):
        raise HTTPException(status_code=404, detail=EVIDENCE_NOT_FOUND)


@router.get("/{evidence_id}/normas-repo", response_model=LinkedNormaList)
def api_list_evidence_normas(
    evidence_id: int,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> LinkedNormaList:
    return LinkedNormaList(items=evidence_service.list_evidence_normas(db, evidence_id))


@router.post("/{evidence_id}/normas-repo", response_model=LinkedNormaRead, status_code=201)
def api_attach_evidence_norma(
    evidence_id: int,
    body: NormaLinkRequest,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> LinkedNormaRead:
    try:
        return evidence_service.attach_norma(
            db, evidence_id, body.norma_repo_id, body.clasificacion, body.observacion
        )
    except (EvidenceNotFoundError, NormaNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.delete("/{evidence_id}/normas-repo/{norma_repo_id}", status_code=204)
def api_detach_evidence_norma(
    evidence_id: int,
    norma_repo_id: int,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> None:
    """Idempotent: 204 whether or not the link existed."""
    evidence_service.detach_norma(db, evidence_id, norma_repo_id)
