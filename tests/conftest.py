"""
Pytest configuration and fixtures.
"""

from __future__ import annotations

import io
import os
import shutil
import tempfile

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from tests.test_constants import TEST_PASSWORD, TEST_SECRET_KEY, TEST_USERNAME

# Force a throwaway SQLite database and uploads dir; don't inherit from .env
_TEST_DATA_DIR = tempfile.mkdtemp(prefix="gestion_proyectos_test_")
os.environ["DATA_DIR"] = _TEST_DATA_DIR
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_TEST_DATA_DIR, "test.db")
os.environ["UPLOADS_DIR"] = os.path.join(_TEST_DATA_DIR, "uploads")
os.environ["SECRET_KEY"] = TEST_SECRET_KEY
os.environ.pop("COMPANY_LOGO", None)


def pytest_sessionfinish(session, exitstatus) -> None:
    shutil.rmtree(_TEST_DATA_DIR, ignore_errors=True)


@pytest.fixture
def client() -> TestClient:
    """FastAPI test client."""
    from gestion_proyectos.main import app

    return TestClient(app)


@pytest.fixture
def client_with_db(db: Session) -> TestClient:
    """TestClient with get_db overridden to use the test db session (no auth override)."""
    from gestion_proyectos.db.session import get_db
    from gestion_proyectos.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    c = TestClient(app)
    yield c
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture(scope="session")
def _ensure_migrations() -> None:
    """Run alembic migrations once per test session against the temp database."""
    import subprocess
    import sys

    project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    result = subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        cwd=project_root,
        capture_output=True,
        text=True,
        timeout=60,
        env=os.environ.copy(),
    )
    assert result.returncode == 0, f"alembic upgrade head failed: {result.stderr}"


@pytest.fixture
def db(_ensure_migrations: None) -> Session:
    """Database session for model tests. All changes are rolled back after each test."""
    from gestion_proyectos.db import engine

    connection = engine.connect()
    transaction = connection.begin()
    session = Session(
        bind=connection,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture
def admin_user(db: Session):
    from gestion_proyectos.models.user import ROLE_ADMIN
    from gestion_proyectos.services.auth import create_user

    return create_user(db, TEST_USERNAME, TEST_PASSWORD, nombre="Admin", rol=ROLE_ADMIN)


@pytest.fixture
def api_client(db: Session, admin_user) -> TestClient:
    """TestClient with the test db session and an authenticated admin."""
    from gestion_proyectos.api.deps import require_auth
    from gestion_proyectos.db.session import get_db
    from gestion_proyectos.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[require_auth] = lambda: admin_user
    c = TestClient(app)
    yield c
    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(require_auth, None)


@pytest.fixture
def project(db: Session):
    from gestion_proyectos.schemas.project import ProjectCreate
    from gestion_proyectos.services.project import create_project

    return create_project(
        db,
        ProjectCreate(nombre="Hotel Central", cliente="Hotelera S.A.", cedula_juridica="3101123456"),
    )


@pytest.fixture
def task(db: Session, project):
    from gestion_proyectos.schemas.task import TaskCreate
    from gestion_proyectos.services.task import create_task

    return create_task(db, TaskCreate(proyecto_id=project.id, nombre="Tablero principal"))


def _png_bytes(seed: int = 0) -> bytes:
    """A real PNG so reportlab can draw it; ``seed`` changes the pixel (and the hash)."""
    from PIL import Image

    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), (seed % 256, 80, 120)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    return _png_bytes


@pytest.fixture
def make_evidence(db: Session, project):
    """Insert an evidence row through the service (stores a real file)."""
    from gestion_proyectos.services.evidence import UploadedImage, create_evidence

    counter = {"n": 0}

    def _make(comentario: str | None = None, tarea_id: int | None = None, **kwargs):
        counter["n"] += 1
        image = UploadedImage(
            filename=f"foto{counter['n']}.png",
            content_type="image/png",
            content=_png_bytes(counter["n"]),
        )
        return create_evidence(
            db,
            proyecto_id=kwargs.pop("proyecto_id", project.id),
            image=image,
            tarea_id=tarea_id,
            comentario=comentario,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_norma(db: Session):
    from gestion_proyectos.models import NormaRepo

    def _make(titulo: str, **fields):
        norma = NormaRepo(titulo=titulo, **fields)
        db.add(norma)
        db.flush()
        return norma

    return _make
