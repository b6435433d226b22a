"""Task and task-comment service."""

from __future__ import annotations

from sqlalchemy.orm import Session

from gestion_proyectos.models import Comment, Phase, Project, Task
from gestion_proyectos.schemas.task import TaskCreate, TaskUpdate


class InvalidTaskReferenceError(ValueError):
    """Raised when a task points at a missing project or a phase of another project."""

    pass


def _check_phase(db: Session, proyecto_id: int, fase_id: int | None) -> None:
    if fase_id is None:
        return
    phase = db.query(Phase).filter(Phase.id == fase_id).first()
    if phase is None or phase.proyecto_id != proyecto_id:
        raise InvalidTaskReferenceError("La fase no pertenece al proyecto")


def create_task(db: Session, data: TaskCreate) -> Task:
    if db.query(Project.id).filter(Project.id == data.proyecto_id).first() is None:
        raise InvalidTaskReferenceError("Proyecto inválido")
    _check_phase(db, data.proyecto_id, data.fase_id)
    task = Task(**data.model_dump())
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def list_tasks(db: Session, proyecto_id: int | None = None) -> list[Task]:
    query = db.query(Task)
    if proyecto_id is not None:
        query = query.filter(Task.proyecto_id == proyecto_id)
    return query.order_by(Task.created_at.asc(), Task.id.asc()).all()


def get_task(db: Session, task_id: int) -> Task | None:
    return db.query(Task).filter(Task.id == task_id).first()


def update_task(db: Session, task_id: int, data: TaskUpdate) -> Task | None:
    task = get_task(db, task_id)
    if task is None:
        return None
    changes = data.model_dump(exclude_unset=True)
    if "fase_id" in changes:
        _check_phase(db, task.proyecto_id, changes["fase_id"])
    for key, value in changes.items():
        setattr(task, key, value)
    db.commit()
    db.refresh(task)
    return task


def delete_task(db: Session, task_id: int) -> bool:
    task = get_task(db, task_id)
    if task is None:
        return False
    db.delete(task)
    db.commit()
    return True


def add_comment(db: Session, task_id: int, comentario: str, usuario_id: int | None) -> Comment | None:
    """Add a comment to a task. Returns None if the task does not exist."""
    if get_task(db, task_id) is None:
        return None
    comment = Comment(tarea_id=task_id, usuario_id=usuario_id, comentario=comentario.strip())
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment


def list_comments(db: Session, task_id: int) -> list[Comment]:
    return (
        db.query(Comment)
        .filter(Comment.tarea_id == task_id)
        .order_by(Comment.fecha_comentario.asc(), Comment.id.asc())
        .all()
    )


def delete_comment(db: Session, comment_id: int) -> bool:
    comment = db.query(Comment).filter(Comment.id == comment_id).first()
    if comment is None:
        return False
    db.delete(comment)
    db.commit()
    return True
