"""
Gestion Proyectos FastAPI application entry point.

Projects → tasks → photographic evidence → norma catalog links → PDF reports
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text

from gestion_proyectos import __version__
from gestion_proyectos.api.errors import register_exception_handlers
from gestion_proyectos.config import get_settings
from gestion_proyectos.db.session import check_db_connection, engine
from gestion_proyectos.services import storage

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    logger.info("Gestion Proyectos starting")
    try:
        try:
            check_db_connection()
            logger.info("Database connection verified")
        except Exception as e:
            logger.critical("Database unreachable: %s", e)
            raise

        uploads = storage.ensure_uploads_dir()
        logger.info("Serving uploads from %s", uploads)
        yield
    finally:
        logger.info("Gestion Proyectos shutting down")
        engine.dispose()
        logger.info("Database connection pool closed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    register_exception_handlers(app)

    from gestion_proyectos.api import (
        auth_router,
        evidencias_router,
        normas_repo_router,
        normas_router,
        proyectos_router,
        reportes_router,
        tareas_router,
    )

    app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
    app.include_router(proyectos_router, prefix="/api/proyectos", tags=["proyectos"])
    app.include_router(tareas_router, prefix="/api/tareas", tags=["tareas"])
    app.include_router(evidencias_router, prefix="/api/evidencias", tags=["evidencias"])
    app.include_router(normas_repo_router, prefix="/api/normas-repo", tags=["normas-repo"])
    app.include_router(normas_router, prefix="/api/normas", tags=["normas"])
    app.include_router(reportes_router, prefix="/api/reportes", tags=["reportes"])

    # Stored image paths are relative to the uploads root
    app.mount(
        storage.PUBLIC_PREFIX,
        StaticFiles(directory=settings.uploads_dir, check_dir=False),
        name="uploads",
    )

    @app.get("/health")
    def health():
        """Health check endpoint. Confirms DB connectivity."""
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return {
                "status": "ok",
                "version": __version__,
                "database": "connected",
            }
        except Exception:
            return JSONResponse(
                status_code=503,
                content={
                    "status": "unhealthy",
                    "version": __version__,
                    "database": "disconnected",
                },
            )

    return app


app = create_app()
