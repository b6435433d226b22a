"""Norma catalog API: listing, maintenance, import and the catalog PDF."""

from __future__ import annotations

import pytest

from gestion_proyectos.api.deps import require_auth
from gestion_proyectos.main import app
from gestion_proyectos.services import catalog
from tests.test_constants import TEST_PASSWORD, TEST_USERNAME_PLAIN


@pytest.fixture
def catalog_rows(make_norma):
    return [
        make_norma("Sin categoría", categoria=""),
        make_norma("Otros equipos", categoria="10. Otros", severidad="Leve"),
        make_norma("Tablero sin tapa", categoria="2. Tableros", severidad="Crítico", etiquetas="tapa"),
        make_norma("Tablero sin rotular", categoria="2. Tableros", fuente="Art. 408.4"),
        make_norma("Cable expuesto", categoria="1. Conductores", codigo="C-01"),
    ]


@pytest.fixture
def plain_client(api_client, db):
    from gestion_proyectos.services.auth import create_user

    user = create_user(db, TEST_USERNAME_PLAIN, TEST_PASSWORD, nombre="Usuario")
    app.dependency_overrides[require_auth] = lambda: user
    return api_client


class TestListing:
    def test_natural_order_with_empty_category_last(self, api_client, catalog_rows):
        data = api_client.get("/api/normas-repo").json()
        assert [n["titulo"] for n in data["items"]] == [
            "Cable expuesto",
            "Tablero sin rotular",
            "Tablero sin tapa",
            "Otros equipos",
            "Sin categoría",
        ]
        assert data["total"] == 5
        assert data["limit"] == catalog.DEFAULT_LIMIT

    def test_numeric_category_matches_prefix_only(self, api_client, catalog_rows):
        items = api_client.get("/api/normas-repo", params={"categoria": "1"}).json()["items"]
        assert [n["titulo"] for n in items] == ["Cable expuesto"]
        items = api_client.get("/api/normas-repo", params={"categoria": "2."}).json()["items"]
        assert len(items) == 2

    def test_text_category_and_severity(self, api_client, catalog_rows):
        items = api_client.get("/api/normas-repo", params={"categoria": "Tablero"}).json()["items"]
        assert len(items) == 2
        items = api_client.get("/api/normas-repo", params={"severidad": "Leve"}).json()["items"]
        assert [n["titulo"] for n in items] == ["Otros equipos"]

    def test_search_keywords_are_anded(self, api_client, catalog_rows):
        items = api_client.get("/api/normas-repo", params={"search": "tablero tapa"}).json()["items"]
        assert [n["titulo"] for n in items] == ["Tablero sin tapa"]
        items = api_client.get("/api/normas-repo", params={"search": "C-01"}).json()["items"]
        assert [n["codigo"] for n in items] == ["C-01"]

    def test_paging_and_all_flag(self, api_client, catalog_rows):
        data = api_client.get("/api/normas-repo", params={"limit": 2, "page": 3}).json()
        assert data["totalPages"] == 3
        assert [n["titulo"] for n in data["items"]] == ["Sin categoría"]
        data = api_client.get("/api/normas-repo", params={"limit": 2, "all": "1"}).json()
        assert data["limit"] == catalog.MAX_LIMIT
        assert len(data["items"]) == 5


class TestMaintenance:
    def test_create_get_update_delete(self, api_client):
        resp = api_client.post(
            "/api/normas-repo", json={"titulo": "Nueva", "categoria": "3. Puesta a tierra"}
        )
        assert resp.status_code == 201
        norma_id = resp.json()["id"]

        resp = api_client.put(f"/api/normas-repo/{norma_id}", json={"fuente": "Art. 250", "categoria": ""})
        assert resp.json()["fuente"] == "Art. 250"
        assert resp.json()["categoria"] == "3. Puesta a tierra"
        assert api_client.get(f"/api/normas-repo/{norma_id}").json()["titulo"] == "Nueva"

        assert api_client.delete(f"/api/normas-repo/{norma_id}").status_code == 204
        assert api_client.get(f"/api/normas-repo/{norma_id}").status_code == 404
        assert api_client.delete(f"/api/normas-repo/{norma_id}").status_code == 404

    def test_delete_cascades_links(self, api_client, make_evidence, make_norma):
        evidence = make_evidence("Tablero")
        norma = make_norma("Con enlace")
        api_client.post(f"/api/evidencias/{evidence.id}/normas-repo", json={"normaRepoId": norma.id})
        assert api_client.delete(f"/api/normas-repo/{norma.id}").status_code == 204
        assert api_client.get(f"/api/evidencias/{evidence.id}/normas-repo").json()["items"] == []

    def test_missing_title_is_400(self, api_client):
        resp = api_client.post("/api/normas-repo", json={"categoria": "X"})
        assert resp.status_code == 400

    def test_non_admin_cannot_modify(self, plain_client, make_norma):
        norma = make_norma("Protegida")
        assert plain_client.get(f"/api/normas-repo/{norma.id}").status_code == 200
        resp = plain_client.post("/api/normas-repo", json={"titulo": "X"})
        assert resp.status_code == 403
        assert resp.json() == {"error": "Requiere rol administrador"}
        assert plain_client.put(f"/api/normas-repo/{norma.id}", json={"titulo": "Y"}).status_code == 403
        assert plain_client.delete(f"/api/normas-repo/{norma.id}").status_code == 403


class TestImport:
    CSV = (
        "Categoría;Descripción;Artículo\n"
        "1. Tableros;Tablero sin tapa;Art. 1\n"
        "1. Tableros;Tablero sin rotular;Art. 2\n"
    ).encode("utf-8")

    def test_csv_upload_creates_then_updates(self, api_client):
        files = {"file": ("normas.csv", self.CSV, "text/csv")}
        resp = api_client.post("/api/normas-repo/import", files=files)
        assert resp.status_code == 200
        assert resp.json() == {"ok": True, "created": 2, "updated": 0, "errors": 0, "total": 2}

        resp = api_client.post("/api/normas-repo/import", files=files)
        assert resp.json()["updated"] == 2
        assert api_client.get("/api/normas-repo").json()["total"] == 2

    def test_unsupported_extension(self, api_client):
        resp = api_client.post("/api/normas-repo/import", files={"file": ("normas.pdf", b"%PDF", "application/pdf")})
        assert resp.status_code == 400

    def test_empty_sheet(self, api_client):
        resp = api_client.post("/api/normas-repo/import", files={"file": ("vacio.csv", b"", "text/csv")})
        assert resp.status_code == 400


class TestReport:
    def test_invalid_ids(self, api_client, catalog_rows):
        resp = api_client.get("/api/normas-repo/report", params={"ids": "x,-1"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "ids inválidos"}

    def test_no_data_is_404(self, api_client):
        resp = api_client.get("/api/normas-repo/report")
        assert resp.status_code == 404
        assert resp.json() == {"error": "No hay datos para generar el PDF"}

    def test_head_returns_headers_only(self, api_client, catalog_rows):
        resp = api_client.head("/api/normas-repo/report")
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        assert resp.headers["content-disposition"] == "inline; filename=normas_repo.pdf"
        assert resp.content == b""

    def test_head_without_data_is_404(self, api_client):
        assert api_client.head("/api/normas-repo/report").status_code == 404

    def test_scenario_c_missing_id_is_skipped(self, api_client, db, catalog_rows):
        first, last = catalog_rows[0], catalog_rows[-1]
        missing = last.id + 1000
        ids = f"{first.id},{missing},{last.id}"

        normas = catalog.normas_for_report(db, ids=catalog.parse_ids(ids))
        assert sorted(n.id for n in normas) == sorted([first.id, last.id])

        resp = api_client.get("/api/normas-repo/report", params={"ids": ids})
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        assert resp.headers["cache-control"] == "no-cache"
        assert resp.content.startswith(b"%PDF")

    def test_filtered_report(self, api_client, catalog_rows):
        resp = api_client.get("/api/normas-repo/report", params={"categoria": "2"})
        assert resp.status_code == 200
        assert resp.content.startswith(b"%PDF")
