"""Tests for the create_user and import_normas CLI scripts."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from gestion_proyectos.services.batch import BatchResult
from gestion_proyectos.services.catalog import ImportResult


# ── create_user ──────────────────────────────────────────────────────


class TestCreateUserScript:
    @patch("gestion_proyectos.scripts.create_user.create_user")
    @patch("gestion_proyectos.scripts.create_user.SessionLocal")
    def test_creates_user(self, mock_session_local, mock_create, capsys) -> None:
        from gestion_proyectos.scripts.create_user import main

        mock_db = MagicMock()
        mock_db.query.return_value.filter.return_value.first.return_value = None
        mock_session_local.return_value = mock_db
        mock_create.return_value = MagicMock(usuario="ana", id=7, rol="admin")

        main(["--usuario", "ana", "--password", "x", "--rol", "admin"])

        mock_create.assert_called_once_with(mock_db, "ana", "x", nombre="", email=None, rol="admin")
        assert "created successfully (id=7, rol=admin)" in capsys.readouterr().out
        mock_db.close.assert_called_once()

    @patch("gestion_proyectos.scripts.create_user.create_user")
    @patch("gestion_proyectos.scripts.create_user.SessionLocal")
    def test_existing_user_exits(self, mock_session_local, mock_create, capsys) -> None:
        from gestion_proyectos.scripts.create_user import main

        mock_db = MagicMock()
        mock_db.query.return_value.filter.return_value.first.return_value = MagicMock()
        mock_session_local.return_value = mock_db

        with pytest.raises(SystemExit) as exc:
            main(["--usuario", "ana", "--password", "x"])
        assert exc.value.code == 1
        mock_create.assert_not_called()
        assert "already exists" in capsys.readouterr().out

    def test_rejects_unknown_role(self) -> None:
        from gestion_proyectos.scripts.create_user import main

        with pytest.raises(SystemExit):
            main(["--usuario", "ana", "--password", "x", "--rol", "root"])


# ── import_normas ────────────────────────────────────────────────────


class TestImportNormasScript:
    @patch("gestion_proyectos.scripts.import_normas.import_catalog")
    @patch("gestion_proyectos.scripts.import_normas.SessionLocal")
    def test_imports_csv(self, mock_session_local, mock_import, tmp_path, capsys) -> None:
        from gestion_proyectos.scripts.import_normas import main

        path = tmp_path / "normas.csv"
        path.write_text("Categoría,Descripción,Artículo\n1. A,Sin tapa,Art. 1\n", encoding="utf-8")
        rows = BatchResult(operation="catalog import")
        rows.failure(3, "boom")
        mock_import.return_value = ImportResult(created=1, updated=0, errors=1, total=2, rows=rows)

        main([str(path)])

        (args, _) = mock_import.call_args
        assert args[1][0] == ["Categoría", "Descripción", "Artículo"]
        out = capsys.readouterr().out
        assert "Imported 2 rows: 1 created, 0 updated, 1 errors." in out
        assert "row 3 failed" in out

    @patch("gestion_proyectos.scripts.import_normas.SessionLocal")
    def test_unsupported_file_exits(self, mock_session_local, tmp_path, capsys) -> None:
        from gestion_proyectos.scripts.import_normas import main

        path = tmp_path / "normas.txt"
        path.write_text("x", encoding="utf-8")
        with pytest.raises(SystemExit) as exc:
            main([str(path)])
        assert exc.value.code == 1
        assert "Import failed" in capsys.readouterr().out
