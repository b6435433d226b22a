"""
Database startup and fail-fast tests.
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient


def test_app_fails_to_start_when_db_unreachable() -> None:
    """App fails fast when database is unreachable at startup."""
    with patch("gestion_proyectos.main.check_db_connection") as mock_check:
        mock_check.side_effect = Exception("Database unreachable")

        from gestion_proyectos.main import create_app

        app = create_app()

        with pytest.raises(Exception, match="Database unreachable"):
            with TestClient(app) as test_client:
                test_client.get("/health")


def test_startup_creates_uploads_dir(tmp_path, monkeypatch) -> None:
    """Lifespan creates the uploads directory when the database is reachable."""
    from gestion_proyectos.config import get_settings

    uploads = tmp_path / "uploads"
    monkeypatch.setenv("UPLOADS_DIR", str(uploads))
    get_settings.cache_clear()
    try:
        with patch("gestion_proyectos.main.check_db_connection"):
            from gestion_proyectos.main import create_app

            with TestClient(create_app()):
                assert uploads.is_dir()
    finally:
        get_settings.cache_clear()
