"""PDF reports: layout, cancellation, Spanish formatting, the project report and type exports."""

from __future__ import annotations

import io
import os
from datetime import date
from unittest.mock import MagicMock

import pytest
from pypdf import PdfReader
from reportlab.lib.pagesizes import A4

from gestion_proyectos.services import storage
from gestion_proyectos.services.reports import (
    CancellationToken,
    GuardedCanvas,
    ReportCancelled,
    layout_catalog_rows,
    load_project_report,
    load_type_export,
    render_catalog_pdf,
    render_project_pdf,
    render_type_export_pdf,
)
from gestion_proyectos.services.reports.catalog_report import MIN_ROW_HEIGHT, TITLE_BLOCK_HEIGHT
from gestion_proyectos.services.reports.formatting import format_cedula, safe_filename, spanish_long_date
from gestion_proyectos.services.reports.project_report import choose_cover
from gestion_proyectos.services.reports.type_export import fitted_size
from gestion_proyectos.services.severity import Severity


class TestFormatting:
    def test_spanish_long_date(self):
        assert spanish_long_date(date(2025, 10, 23)) == "Jueves 23 de Octubre del 2025."
        assert spanish_long_date(None) == "No indicada"

    def test_format_cedula(self):
        assert format_cedula("3101123456") == "3-101-123456"
        assert format_cedula("1-1234-0567") == "1-12-340567"
        assert format_cedula("ABC") == "ABC"
        assert format_cedula(None) == ""

    def test_safe_filename(self):
        assert safe_filename("PROY 2025/001", "x.pdf") == "PROY_2025_001.pdf"
        assert safe_filename(None, "reporte.pdf") == "reporte.pdf"


class TestCatalogLayout:
    def test_rows_flow_onto_new_pages_with_header(self):
        rows = [("1. Tableros", f"Fila {i}", "Art. 1") for i in range(100)]
        pages = layout_catalog_rows(rows)
        _, height = A4

        assert len(pages) > 1
        assert sum(len(p.rows) for p in pages) == 100
        assert pages[0].header_y == height - 40 - TITLE_BLOCK_HEIGHT
        for page in pages[1:]:
            assert page.header_y == height - 40
        for page in pages:
            assert page.rows
            assert all(row.y - row.height >= 50 for row in page.rows)

    def test_minimum_and_wrapped_row_height(self):
        long_text = "Conductor expuesto sin protección mecánica " * 10
        (page,) = layout_catalog_rows([("", "corta", ""), ("Cat", long_text, "Art. 9")])
        short, tall = page.rows
        assert short.height == MIN_ROW_HEIGHT
        assert tall.height > MIN_ROW_HEIGHT
        assert len(tall.lines[1]) > 1
        assert tall.y == short.y - short.height

    def test_empty_input_still_has_a_page(self):
        pages = layout_catalog_rows([])
        assert len(pages) == 1
        assert pages[0].rows == []


class TestCancellation:
    def test_guarded_canvas_skips_after_cancel(self):
        token = CancellationToken()
        inner = MagicMock()
        pdf = GuardedCanvas(inner, token)

        pdf.drawString(1, 2, "antes")
        token.cancel()
        pdf.drawString(1, 2, "después")
        pdf.showPage()

        inner.drawString.assert_called_once_with(1, 2, "antes")
        inner.showPage.assert_not_called()
        assert pdf.skipped == 2
        assert pdf.canvas is inner

    def test_raise_if_cancelled(self):
        token = CancellationToken()
        token.raise_if_cancelled()
        token.cancel()
        assert token.cancelled
        with pytest.raises(ReportCancelled):
            token.raise_if_cancelled()

    def test_cancelled_catalog_render_raises(self, make_norma):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(ReportCancelled):
            render_catalog_pdf([make_norma("N", categoria="1. A")], token)

    def test_catalog_render_produces_pdf(self, make_norma):
        normas = [make_norma(f"Norma {i}", categoria="1. A", fuente="Art. 1") for i in range(60)]
        data = render_catalog_pdf(normas, CancellationToken())
        assert data.startswith(b"%PDF")


class TestProjectReportData:
    def test_missing_project(self, db):
        assert load_project_report(db, 999999) is None

    def test_cover_and_body(self, db, project, task, make_evidence, make_norma):
        cover = make_evidence("[PORTADA] Fachada principal")
        make_evidence("Tablero ordenado", tarea_id=task.id)
        bad = make_evidence("Cable expuesto", tarea_id=task.id, categoria=Severity.CRITICO)
        norma = make_norma("Conductores protegidos", fuente="Art. 300")
        from gestion_proyectos.services.evidence import attach_norma

        attach_norma(db, bad.id, norma.id, Severity.CRITICO)

        data = load_project_report(db, project.id)
        assert data.codigo == project.codigo
        assert data.razon_social == "Hotelera S.A."
        assert data.cedula == "3-101-123456"
        assert data.cover_image == storage.absolute_path(cover.image_path)
        assert [b.comentario for b in data.blocks] == ["Tablero ordenado", "Cable expuesto"]
        assert [b.number for b in data.blocks] == [1, 2]
        assert data.blocks[0].tarea == "Tablero principal"
        assert data.blocks[0].normas == []
        (entry,) = data.blocks[1].normas
        assert entry.text == "Conductores protegidos — Art. 300"
        assert entry.severity is Severity.CRITICO

        critical = load_project_report(db, project.id, Severity.CRITICO)
        assert [b.comentario for b in critical.blocks] == ["Cable expuesto"]

    def test_choose_cover_fallbacks(self):
        first = MagicMock(evidence_type="GENERAL", comentario="Uno")
        institutional = MagicMock(evidence_type="GENERAL", comentario="[INSTITUCION] Logo")
        portada = MagicMock(evidence_type="PORTADA", comentario="Frente")
        assert choose_cover([first, institutional, portada]) is portada
        assert choose_cover([first, institutional]) is institutional
        assert choose_cover([first]) is first
        assert choose_cover([]) is None

    def test_render_with_missing_image(self, db, project, make_evidence):
        evidence = make_evidence("Foto borrada")
        make_evidence("Foto presente")
        os.remove(storage.absolute_path(evidence.image_path))

        data = load_project_report(db, project.id)
        pdf = render_project_pdf(data, CancellationToken())
        assert pdf.startswith(b"%PDF")

    def test_cancelled_render_raises(self, db, project, make_evidence):
        make_evidence("Una foto")
        token = CancellationToken()
        token.cancel()
        with pytest.raises(ReportCancelled):
            render_project_pdf(load_project_report(db, project.id), token)


class TestProjectReportEndpoint:
    def test_returns_inline_pdf(self, api_client, project, make_evidence):
        make_evidence("Tablero")
        resp = api_client.get(f"/api/reportes/proyectos/{project.id}/pdf")
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        assert resp.headers["content-disposition"] == f"inline; filename={project.codigo}.pdf"
        assert resp.content.startswith(b"%PDF")

    def test_project_without_evidence_still_renders_cover(self, api_client, project):
        resp = api_client.get(f"/api/reportes/proyectos/{project.id}/pdf")
        assert resp.status_code == 200
        assert resp.content.startswith(b"%PDF")

    def test_unknown_project(self, api_client):
        resp = api_client.get("/api/reportes/proyectos/999999/pdf")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Proyecto no encontrado"}

    def test_invalid_categoria(self, api_client, project):
        resp = api_client.get(f"/api/reportes/proyectos/{project.id}/pdf", params={"categoria": "GRAVE"})
        assert resp.status_code == 400

    def test_requires_auth(self, client_with_db, project):
        assert client_with_db.get(f"/api/reportes/proyectos/{project.id}/pdf").status_code == 401


class TestTypeExport:
    def test_rows_are_one_type_oldest_first(self, db, project, task, make_evidence):
        first = make_evidence("Detalle técnico uno", tarea_id=task.id, evidence_type="TECNICA")
        make_evidence("Vista general", evidence_type="GENERAL")
        second = make_evidence("Detalle técnico dos", evidence_type="TECNICA")

        rows = load_type_export(db, project.id, "TECNICA")
        assert [r.id for r in rows] == [first.id, second.id]
        assert rows[0].tarea_id == task.id
        assert rows[1].comentario == "Detalle técnico dos"

    def test_fitted_size_scales_down_only(self, tmp_path):
        from PIL import Image

        big = tmp_path / "big.png"
        Image.new("RGB", (1000, 300), "white").save(big)
        small = tmp_path / "small.png"
        Image.new("RGB", (50, 40), "white").save(small)

        assert fitted_size(str(big)) == (500, 150)
        assert fitted_size(str(small)) == (50, 40)
        assert fitted_size(str(tmp_path / "missing.png")) is None

    def test_many_rows_flow_onto_new_pages(self, db, project, make_evidence):
        for i in range(8):
            make_evidence(f"Hallazgo {i} " + "texto largo " * 60, evidence_type="INCUMPLIMIENTO")
        rows = load_type_export(db, project.id, "INCUMPLIMIENTO")
        pdf = render_type_export_pdf("INCUMPLIMIENTO", rows, CancellationToken())
        assert pdf.startswith(b"%PDF")
        assert len(PdfReader(io.BytesIO(pdf)).pages) >= 2

    def test_cancelled_export_raises(self, db, project, make_evidence):
        make_evidence("Una foto", evidence_type="GENERAL")
        token = CancellationToken()
        token.cancel()
        with pytest.raises(ReportCancelled):
            render_type_export_pdf("GENERAL", load_type_export(db, project.id, "GENERAL"), token)

    def test_endpoint_returns_attachment(self, api_client, project, make_evidence):
        make_evidence("Detalle", evidence_type="TECNICA")
        resp = api_client.get(
            "/api/evidencias/export/pdf", params={"proyectoId": project.id, "tipo": "tecnica"}
        )
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        assert (
            resp.headers["content-disposition"]
            == f'attachment; filename="evidencias_TECNICA_{project.id}.pdf"'
        )
        assert resp.content.startswith(b"%PDF")

    def test_endpoint_without_rows_is_404(self, api_client, project, make_evidence):
        make_evidence("Vista", evidence_type="GENERAL")
        resp = api_client.get(
            "/api/evidencias/export/pdf", params={"proyectoId": project.id, "tipo": "PORTADA"}
        )
        assert resp.status_code == 404
        assert resp.json() == {"error": "Sin evidencias para ese tipo"}

    @pytest.mark.parametrize(
        "params",
        [
            {"tipo": "GENERAL"},
            {"proyectoId": 0, "tipo": "GENERAL"},
            {"proyectoId": 1, "tipo": ""},
            {"proyectoId": 1, "tipo": "X" * 51},
        ],
    )
    def test_endpoint_validates_query(self, api_client, params):
        assert api_client.get("/api/evidencias/export/pdf", params=params).status_code == 400
