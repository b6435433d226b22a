"""Project report routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session

from gestion_proyectos.api.deps import get_db, require_auth
from gestion_proyectos.api.pdf import render_pdf_response
from gestion_proyectos.config import get_settings
from gestion_proyectos.services.reports import load_project_report, render_project_pdf
from gestion_proyectos.services.reports.formatting import safe_filename
from gestion_proyectos.services.severity import Severity

router = APIRouter()


@router.get("/proyectos/{project_id}/pdf")
async def api_project_report(
    request: Request,
    project_id: int,
    categoria: str | None = Query(None),
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> Response:
    """Photographic report of a project, optionally limited to one classification."""
    severity = None
    if categoria is not None and categoria.strip():
        severity = Severity.parse(categoria)
        if severity is None:
            raise HTTPException(status_code=400, detail="Categoría inválida")
    data = load_project_report(db, project_id, severity)
    if data is None:
        raise HTTPException(status_code=404, detail="Proyecto no encontrado")

    filename = safe_filename(data.codigo, f"reporte_proyecto_{project_id}.pdf")
    logo = get_settings().company_logo
    return await render_pdf_response(
        request, lambda token: render_project_pdf(data, token, logo), filename
    )
