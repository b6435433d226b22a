"""HTTP API routers."""

from gestion_proyectos.api.auth import router as auth_router
from gestion_proyectos.api.evidencias import router as evidencias_router
from gestion_proyectos.api.normas import router as normas_router
from gestion_proyectos.api.normas_repo import router as normas_repo_router
from gestion_proyectos.api.proyectos import router as proyectos_router
from gestion_proyectos.api.reportes import router as reportes_router
from gestion_proyectos.api.tareas import router as tareas_router

__all__ = [
    "auth_router",
    "evidencias_router",
    "normas_router",
    "normas_repo_router",
    "proyectos_router",
    "reportes_router",
    "tareas_router",
]
