"""Project and phase API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from gestion_proyectos.api.deps import get_db, require_auth
from gestion_proyectos.schemas.project import (
    PhaseRead,
    PhaseUpdate,
    ProjectCreate,
    ProjectList,
    ProjectRead,
    ProjectUpdate,
)
from gestion_proyectos.services.project import (
    create_project,
    delete_project,
    get_project,
    list_phases,
    list_projects,
    update_phase_state,
    update_project,
)

router = APIRouter()


@router.get("", response_model=ProjectList)
def api_list_projects(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    search: str | None = Query(None),
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> ProjectList:
    """List projects, newest first, with optional search on name/code/client."""
    items, total = list_projects(db, page=page, limit=limit, search=search)
    return ProjectList(
        items=[ProjectRead.model_validate(p) for p in items],
        total=total,
        page=page,
        limit=limit,
    )


@router.post("", response_model=ProjectRead, status_code=201)
def api_create_project(
    data: ProjectCreate,
    db: Session = Depends(get_db),
    user=Depends(require_auth),
) -> ProjectRead:
    project = create_project(db, data, created_by=getattr(user, "id", None))
    return ProjectRead.model_validate(project)


@router.put("/fases/{fase_id}", response_model=PhaseRead)
def api_update_phase(
    fase_id: int,
    data: PhaseUpdate,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> PhaseRead:
    phase = update_phase_state(db, fase_id, data.estado)
    if phase is None:
        raise HTTPException(status_code=404, detail="Fase no encontrada")
    return PhaseRead.model_validate(phase)


@router.get("/{project_id}", response_model=ProjectRead)
def api_get_project(
    project_id: int,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> ProjectRead:
    project = get_project(db, project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Proyecto no encontrado")
    return ProjectRead.model_validate(project)


@router.put("/{project_id}", response_model=ProjectRead)
def api_update_project(
    project_id: int,
    data: ProjectUpdate,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> ProjectRead:
    project = update_project(db, project_id, data)
    if project is None:
        raise HTTPException(status_code=404, detail="Proyecto no encontrado")
    return ProjectRead.model_validate(project)


@router.delete("/{project_id}", status_code=204)
def api_delete_project(
    project_id: int,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> None:
    """Delete a project with its phases, tasks and evidence."""
    if not delete_project(db, project_id):
        raise HTTPException(status_code=404, detail="Proyecto no encontrado")


@router.get("/{project_id}/fases", response_model=list[PhaseRead])
def api_list_phases(
    project_id: int,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> list[PhaseRead]:
    if get_project(db, project_id) is None:
        raise HTTPException(status_code=404, detail="Proyecto no encontrado")
    return [PhaseRead.model_validate(p) for p in list_phases(db, project_id)]
