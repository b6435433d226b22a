"""Project CRUD service: sequential codes and default phases."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from gestion_proyectos.models import Evidence, Phase, Project
from gestion_proyectos.models.phase import DEFAULT_PHASES
from gestion_proyectos.schemas.project import ProjectCreate, ProjectUpdate
from gestion_proyectos.services import storage

logger = logging.getLogger(__name__)

_CODE_RE = re.compile(r"^PROY-\d{4}-(\d{4})$")


def next_project_code(db: Session, year: int | None = None) -> str:
    """Return the next ``PROY-YYYY-####`` code for the year."""
    year = year or datetime.now(timezone.utc).year
    prefix = f"PROY-{year}-"
    last = (
        db.query(Project.codigo)
        .filter(Project.codigo.like(f"{prefix}%"))
        .order_by(Project.codigo.desc())
        .first()
    )
    next_number = 1
    if last is not None:
        match = _CODE_RE.match(last[0])
        if match:
            next_number = int(match.group(1)) + 1
    return f"{prefix}{next_number:04d}"


def create_project(db: Session, data: ProjectCreate, created_by: int | None = None) -> Project:
    """Create a project with its default phases (all Pendiente)."""
    project = Project(
        codigo=next_project_code(db),
        created_by=created_by,
        **data.model_dump(),
    )
    for orden, nombre in enumerate(DEFAULT_PHASES, start=1):
        project.fases.append(Phase(nombre=nombre, orden=orden, estado="Pendiente"))
    db.add(project)
    db.commit()
    db.refresh(project)
    logger.info("Project %s created (id=%s)", project.codigo, project.id)
    return project


def list_projects(
    db: Session, *, page: int = 1, limit: int = 50, search: str | None = None
) -> tuple[list[Project], int]:
    query = db.query(Project)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            Project.nombre.ilike(pattern)
            | Project.codigo.ilike(pattern)
            | Project.cliente.ilike(pattern)
        )
    total = query.count()
    items = (
        query.order_by(Project.created_at.desc(), Project.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return items, total


def get_project(db: Session, project_id: int) -> Project | None:
    return db.query(Project).filter(Project.id == project_id).first()


def update_project(db: Session, project_id: int, data: ProjectUpdate) -> Project | None:
    """Update an existing project. Returns None if not found."""
    project = get_project(db, project_id)
    if project is None:
        return None
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(project, key, value)
    db.commit()
    db.refresh(project)
    return project


def delete_project(db: Session, project_id: int) -> bool:
    """Delete a project, its rows, and (best-effort) its evidence files."""
    project = get_project(db, project_id)
    if project is None:
        return False
    image_paths = [
        p for (p,) in db.query(Evidence.image_path).filter(Evidence.proyecto_id == project_id)
    ]
    db.delete(project)
    db.commit()
    for path in image_paths:
        try:
            storage.remove_file(path)
        except OSError as e:
            logger.warning("Could not remove evidence file %s: %s", path, e)
    return True


def list_phases(db: Session, project_id: int) -> list[Phase]:
    return db.query(Phase).filter(Phase.proyecto_id == project_id).order_by(Phase.orden).all()


def update_phase_state(db: Session, phase_id: int, estado: str) -> Phase | None:
    phase = db.query(Phase).filter(Phase.id == phase_id).first()
    if phase is None:
        return None
    phase.estado = estado
    db.commit()
    db.refresh(phase)
    return phase
