"""Norma catalog API routes: CRUD, spreadsheet import, PDF report and reference photos."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from gestion_proyectos.api.deps import get_db, require_admin, require_auth
from gestion_proyectos.api.pdf import pdf_headers, render_pdf_response
from gestion_proyectos.config import get_settings
from gestion_proyectos.schemas.norma_repo import (
    ImportResponse,
    NormaRepoCreate,
    NormaRepoPage,
    NormaRepoRead,
    NormaRepoUpdate,
    ReferenceImageList,
    ReferenceImageRead,
)
from gestion_proyectos.services import catalog
from gestion_proyectos.services.catalog import images as reference_images
from gestion_proyectos.services.evidence import UploadedImage
from gestion_proyectos.services.reports import render_catalog_pdf

router = APIRouter()

REPORT_FILENAME = "normas_repo.pdf"
NOT_FOUND = "Norma de repositorio no encontrada"


@router.get("", response_model=NormaRepoPage)
def api_list_normas(
    search: str | None = Query(None),
    categoria: str | None = Query(None),
    severidad: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int | None = Query(None),
    all: str | None = Query(None),
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> NormaRepoPage:
    """Filtered catalog page in natural category order."""
    limit = catalog.resolve_limit(limit, all)
    items, total, total_pages = catalog.list_normas(
        db, search=search, categoria=categoria, severidad=severidad, page=page, limit=limit
    )
    return NormaRepoPage(
        items=[NormaRepoRead.model_validate(n) for n in items],
        page=page,
        limit=limit,
        total=total,
        total_pages=total_pages,
    )


@router.post("", response_model=NormaRepoRead, status_code=201)
def api_create_norma(
    data: NormaRepoCreate,
    db: Session = Depends(get_db),
    _admin: None = Depends(require_admin),
) -> NormaRepoRead:
    return NormaRepoRead.model_validate(catalog.create_norma(db, data))


@router.post("/import", response_model=ImportResponse)
async def api_import_normas(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    _admin: None = Depends(require_admin),
) -> ImportResponse:
    """Upsert catalog rows from the first sheet of an .xlsx or .csv file."""
    try:
        content = await file.read()
    finally:
        await file.close()
    if len(content) > get_settings().max_import_bytes:
        raise HTTPException(status_code=400, detail="Archivo demasiado grande")
    try:
        rows = catalog.read_table(file.filename or "", content)
        result = catalog.import_catalog(db, rows)
    except (catalog.UnsupportedTableError, catalog.EmptySheetError) as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return ImportResponse(
        created=result.created, updated=result.updated, errors=result.errors, total=result.total
    )


@router.api_route("/report", methods=["GET", "HEAD"])
async def api_normas_report(
    request: Request,
    ids: str | None = Query(None),
    search: str | None = Query(None),
    categoria: str | None = Query(None),
    severidad: str | None = Query(None),
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> Response:
    """PDF of explicit ``ids`` or of the filtered catalog. HEAD answers headers only."""
    id_list = catalog.parse_ids(ids)
    if id_list is not None and not id_list:
        raise HTTPException(status_code=400, detail="ids inválidos")
    normas = catalog.normas_for_report(
        db, ids=id_list, search=search, categoria=categoria, severidad=severidad
    )
    if not normas:
        return JSONResponse(status_code=404, content={"error": "No hay datos para generar el PDF"})
    if request.method == "HEAD":
        return Response(media_type="application/pdf", headers=pdf_headers(REPORT_FILENAME))

    rows = [NormaRepoRead.model_validate(n) for n in normas]
    logo = get_settings().company_logo
    return await render_pdf_response(
        request, lambda token: render_catalog_pdf(rows, token, logo), REPORT_FILENAME
    )


# ── Reference photos ─────────────────────────────────────────────────


@router.delete("/evidencias/{evidencia_id}", status_code=204)
def api_delete_reference_image(
    evidencia_id: int,
    db: Session = Depends(get_db),
    _admin: None = Depends(require_admin),
) -> None:
    """Remove a reference photo and (best-effort) its image and thumbnail files."""
    if not reference_images.delete_reference_image(db, evidencia_id):
        raise HTTPException(status_code=404, detail="Evidencia no encontrada")


@router.post("/{norma_id}/evidencias", response_model=ReferenceImageRead, status_code=201)
async def api_add_reference_image(
    norma_id: int,
    file: UploadFile | None = File(None),
    comentario: str | None = Form(None),
    db: Session = Depends(get_db),
    _admin: None = Depends(require_admin),
) -> ReferenceImageRead:
    """Store an example photo, re-encoded to JPEG with a thumbnail."""
    image = None
    if file is not None:
        try:
            content = await file.read()
        finally:
            await file.close()
        image = UploadedImage(
            filename=file.filename or "", content_type=file.content_type, content=content
        )
    try:
        row = reference_images.add_reference_image(db, norma_id, image, comentario)
    except catalog.ReferenceImageError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except catalog.CatalogEntryNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return reference_images.to_read(row)


@router.get("/{norma_id}/evidencias", response_model=ReferenceImageList)
def api_list_reference_images(
    norma_id: int,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> ReferenceImageList:
    rows = reference_images.list_reference_images(db, norma_id)
    return ReferenceImageList(items=[reference_images.to_read(r) for r in rows])


@router.get("/{norma_id}", response_model=NormaRepoRead)
def api_get_norma(
    norma_id: int,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> NormaRepoRead:
    norma = catalog.get_norma(db, norma_id)
    if norma is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return NormaRepoRead.model_validate(norma)


@router.put("/{norma_id}", response_model=NormaRepoRead)
def api_update_norma(
    norma_id: int,
    data: NormaRepoUpdate,
    db: Session = Depends(get_db),
    _admin: None = Depends(require_admin),
) -> NormaRepoRead:
    norma = catalog.update_norma(db, norma_id, data)
    if norma is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return NormaRepoRead.model_validate(norma)


@router.delete("/{norma_id}", status_code=204)
def api_delete_norma(
    norma_id: int,
    db: Session = Depends(get_db),
    _admin: None = Depends(require_admin),
) -> None:
    if not catalog.delete_norma(db, norma_id):
        raise HTTPException(status_code=404, detail=NOT_FOUND)
