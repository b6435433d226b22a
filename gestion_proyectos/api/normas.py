"""Norma document library routes: upload, search, project/task links."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlalchemy.orm import Session

from gestion_proyectos.api.deps import get_db, require_auth
from gestion_proyectos.schemas.norma import NormaAttachRequest, NormaPage, NormaRead, OkResponse
from gestion_proyectos.services import norma_library
from gestion_proyectos.services.norma_library import NormaLibraryError

router = APIRouter()

NOT_FOUND = "Norma no encontrada"


@router.post("/upload", response_model=NormaRead, status_code=201)
async def api_upload_norma(
    file: UploadFile | None = File(None),
    titulo: str = Form(..., min_length=1, max_length=200),
    descripcion: str | None = Form(None, max_length=2000),
    etiquetas: str | None = Form(None, max_length=500),
    proyecto_id: int | None = Form(None, alias="proyectoId", ge=1),
    tarea_id: int | None = Form(None, alias="tareaId", ge=1),
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> NormaRead:
    """Store a PDF or text document; its text is extracted for search."""
    filename, content_type, content = None, None, None
    if file is not None:
        try:
            content = await file.read()
        finally:
            await file.close()
        filename, content_type = file.filename, file.content_type
    try:
        norma = norma_library.upload_norma(
            db,
            titulo=titulo,
            filename=filename,
            content_type=content_type,
            content=content,
            descripcion=descripcion,
            etiquetas=etiquetas,
            proyecto_id=proyecto_id,
            tarea_id=tarea_id,
        )
    except NormaLibraryError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return norma_library.to_read(norma)


@router.get("", response_model=NormaPage)
def api_list_normas(
    search: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> NormaPage:
    items, total, total_pages = norma_library.list_normas(db, search=search, page=page, limit=limit)
    return NormaPage(
        items=[norma_library.to_read(n) for n in items],
        page=page,
        limit=limit,
        total=total,
        total_pages=total_pages,
    )


@router.get("/by-project/{proyecto_id}", response_model=list[NormaRead])
def api_project_normas(
    proyecto_id: int,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> list[NormaRead]:
    return [norma_library.to_read(n) for n in norma_library.normas_for_project(db, proyecto_id)]


@router.get("/by-task/{tarea_id}", response_model=list[NormaRead])
def api_task_normas(
    tarea_id: int,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> list[NormaRead]:
    return [norma_library.to_read(n) for n in norma_library.normas_for_task(db, tarea_id)]


@router.post("/{norma_id}/attach", response_model=OkResponse)
def api_attach_norma(
    norma_id: int,
    body: NormaAttachRequest,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> OkResponse:
    """Link the document to a project and/or task. Re-attaching is a no-op."""
    try:
        found = norma_library.attach_norma(db, norma_id, body.proyecto_id, body.tarea_id)
    except NormaLibraryError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    if not found:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return OkResponse()


@router.post("/{norma_id}/detach", response_model=OkResponse)
def api_detach_norma(
    norma_id: int,
    body: NormaAttachRequest,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> OkResponse:
    try:
        found = norma_library.detach_norma(db, norma_id, body.proyecto_id, body.tarea_id)
    except NormaLibraryError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    if not found:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return OkResponse()


@router.delete("/{norma_id}", status_code=204)
def api_delete_norma(
    norma_id: int,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> None:
    if not norma_library.delete_norma(db, norma_id):
        raise HTTPException(status_code=404, detail=NOT_FOUND)
