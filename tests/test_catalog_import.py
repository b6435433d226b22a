"""Catalog upsert identity and bulk import against the test database."""

from __future__ import annotations

import pytest
from sqlalchemy.orm import Session

from gestion_proyectos.models import NormaRepo
from gestion_proyectos.services.catalog import EmptySheetError, import_catalog, upsert_norma


class TestUpsertNorma:
    def test_insert_then_update_by_codigo_keeps_id(self, db: Session):
        norma, created = upsert_norma(db, {"codigo": "E-1", "titulo": "Tomas sin tierra"})
        assert created is True
        again, created = upsert_norma(db, {"codigo": "E-1", "titulo": "Tomas sin tierra (rev)"})
        assert created is False
        assert again.id == norma.id
        assert again.titulo == "Tomas sin tierra (rev)"

    def test_exact_tuple_match_treats_null_as_empty(self, db: Session):
        norma, _ = upsert_norma(db, {"titulo": "Cable expuesto", "categoria": "Canalizaciones"})
        again, created = upsert_norma(
            db, {"titulo": "Cable expuesto", "categoria": "Canalizaciones", "subcategoria": ""}
        )
        assert created is False
        assert again.id == norma.id

    def test_case_and_whitespace_insensitive_title_and_source(self, db: Session):
        norma, _ = upsert_norma(db, {"titulo": "Cable Expuesto", "fuente": "Art. 5", "categoria": "A"})
        again, created = upsert_norma(
            db, {"titulo": "  cable expuesto ", "fuente": "art. 5 ", "categoria": "B"}
        )
        assert created is False
        assert again.id == norma.id
        assert again.categoria == "B"

    def test_accented_uppercase_title_matches_itself(self, db: Session):
        data = {"titulo": "INSTALACIÓN SIN TIERRA", "fuente": "Art. 5"}
        norma, created = upsert_norma(db, {**data, "categoria": "A"})
        assert created is True
        again, created = upsert_norma(db, {**data, "categoria": "B"})
        assert created is False
        assert again.id == norma.id
        assert db.query(NormaRepo).count() == 1

    def test_accented_title_matches_across_case(self, db: Session):
        norma, _ = upsert_norma(db, {"titulo": "Conexión Dañada", "fuente": "Art. 7"})
        again, created = upsert_norma(db, {"titulo": "CONEXIÓN DAÑADA", "fuente": "ART. 7"})
        assert created is False
        assert again.id == norma.id

    def test_update_only_overwrites_supplied_fields(self, db: Session):
        norma, _ = upsert_norma(
            db, {"codigo": "E-2", "titulo": "Tablero", "descripcion": "Sin tapa", "fuente": "Art. 1"}
        )
        upsert_norma(db, {"codigo": "E-2", "titulo": "Tablero", "descripcion": "", "fuente": None})
        db.refresh(norma)
        assert norma.descripcion == "Sin tapa"
        assert norma.fuente == "Art. 1"

    def test_different_source_creates_new_entry(self, db: Session):
        first, _ = upsert_norma(db, {"titulo": "Cable expuesto", "fuente": "Art. 5"})
        second, created = upsert_norma(db, {"titulo": "Cable expuesto", "fuente": "Art. 6"})
        assert created is True
        assert second.id != first.id

    def test_missing_title_on_insert_raises(self, db: Session):
        with pytest.raises(ValueError):
            upsert_norma(db, {"categoria": "A"})


class TestImportCatalog:
    ROWS = [
        ["Categoría", "Descripción", "Artículo"],
        ["1. Tableros", "Tablero sin rotular", "Art. 408.4"],
        ["2. Canalizaciones", "Tubería dañada", "Art. 300"],
    ]

    def test_import_creates_then_updates(self, db: Session):
        result = import_catalog(db, self.ROWS)
        assert (result.created, result.updated, result.errors, result.total) == (2, 0, 0, 2)
        ids = {n.titulo: n.id for n in db.query(NormaRepo).all()}

        result = import_catalog(db, self.ROWS)
        assert (result.created, result.updated, result.errors, result.total) == (0, 2, 0, 2)
        assert {n.titulo: n.id for n in db.query(NormaRepo).all()} == ids

    def test_positional_sheet(self, db: Session):
        rows = [["Tableros"], ["a", "Sin tapa", "Art. 1"], ["b", "Sin rótulo", "Art. 2"]]
        result = import_catalog(db, rows)
        assert result.created == 2
        categorias = {n.categoria for n in db.query(NormaRepo).all()}
        assert categorias == {"Tableros"}

    def test_empty_sheet_raises(self, db: Session):
        with pytest.raises(EmptySheetError):
            import_catalog(db, [[None, ""], []])

    def test_failing_row_is_counted_and_import_continues(self, db: Session, monkeypatch):
        from gestion_proyectos.services.catalog import importer

        real_upsert = importer.upsert_norma

        def flaky(db_, data):
            if data.get("titulo") == "Tablero sin rotular":
                raise ValueError("boom")
            return real_upsert(db_, data)

        monkeypatch.setattr(importer, "upsert_norma", flaky)
        result = import_catalog(db, self.ROWS)
        assert (result.created, result.errors, result.total) == (1, 1, 2)
        assert result.rows.failed == 1
