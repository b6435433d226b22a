"""Task and task-comment API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from gestion_proyectos.api.deps import get_db, require_auth
from gestion_proyectos.schemas.task import (
    CommentCreate,
    CommentList,
    CommentRead,
    TaskCreate,
    TaskList,
    TaskRead,
    TaskUpdate,
)
from gestion_proyectos.services.task import (
    InvalidTaskReferenceError,
    add_comment,
    create_task,
    delete_comment,
    delete_task,
    get_task,
    list_comments,
    list_tasks,
    update_task,
)

router = APIRouter()


@router.get("", response_model=TaskList)
def api_list_tasks(
    proyecto_id: int | None = Query(None, alias="proyectoId"),
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> TaskList:
    return TaskList(items=[TaskRead.model_validate(t) for t in list_tasks(db, proyecto_id)])


@router.post("", response_model=TaskRead, status_code=201)
def api_create_task(
    data: TaskCreate,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> TaskRead:
    try:
        task = create_task(db, data)
    except InvalidTaskReferenceError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return TaskRead.model_validate(task)


@router.delete("/comentarios/{comment_id}", status_code=204)
def api_delete_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> None:
    if not delete_comment(db, comment_id):
        raise HTTPException(status_code=404, detail="Comentario no encontrado")


@router.get("/{task_id}", response_model=TaskRead)
def api_get_task(
    task_id: int,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> TaskRead:
    task = get_task(db, task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Tarea no encontrada")
    return TaskRead.model_validate(task)


@router.put("/{task_id}", response_model=TaskRead)
def api_update_task(
    task_id: int,
    data: TaskUpdate,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> TaskRead:
    try:
        task = update_task(db, task_id, data)
    except InvalidTaskReferenceError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    if task is None:
        raise HTTPException(status_code=404, detail="Tarea no encontrada")
    return TaskRead.model_validate(task)


@router.delete("/{task_id}", status_code=204)
def api_delete_task(
    task_id: int,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> None:
    if not delete_task(db, task_id):
        raise HTTPException(status_code=404, detail="Tarea no encontrada")


@router.get("/{task_id}/comentarios", response_model=CommentList)
def api_list_comments(
    task_id: int,
    db: Session = Depends(get_db),
    _auth: None = Depends(require_auth),
) -> CommentList:
    if get_task(db, task_id) is None:
        raise HTTPException(status_code=404, detail="Tarea no encontrada")
    return CommentList(items=[CommentRead.model_validate(c) for c in list_comments(db, task_id)])


@router.post("/{task_id}/comentarios", response_model=CommentRead, status_code=201)
def api_add_comment(
    task_id: int,
    data: CommentCreate,
    db: Session = Depends(get_db),
    user=Depends(require_auth),
) -> CommentRead:
    comment = add_comment(db, task_id, data.comentario, getattr(user, "id", None))
    if comment is None:
        raise HTTPException(status_code=404, detail="Tarea no encontrada")
    return CommentRead.model_validate(comment)
