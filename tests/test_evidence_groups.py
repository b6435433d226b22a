"""Group-level evidence operations: resolution, norma links and deletion."""

from __future__ import annotations

from unittest.mock import patch
from urllib.parse import quote

from sqlalchemy.exc import SQLAlchemyError

from gestion_proyectos.models import Evidence, EvidenceNormaLink
from gestion_proyectos.services import evidence_groups, storage
from gestion_proyectos.services.grouping import build_group_key


def _group_url(group_key: str, suffix: str = "") -> str:
    return f"/api/evidencias/groups/{quote(group_key)}{suffix}"


class TestResolveGroup:
    def test_matches_stored_and_recomputed_keys(self, db, task, make_evidence):
        first = make_evidence("Grieta  en muro", tarea_id=task.id)
        legacy = make_evidence("[PORTADA] Grieta en muro", tarea_id=task.id)
        legacy.group_key = None
        db.commit()
        make_evidence("Otra cosa", tarea_id=task.id)

        key = build_group_key(task.id, "Grieta en muro")
        ids = [e.id for e in evidence_groups.resolve_group(db, key)]
        assert ids == [first.id, legacy.id]

    def test_unknown_group_is_empty(self, db):
        assert evidence_groups.resolve_group(db, "t0|cNada") == []
        assert evidence_groups.resolve_group(db, "garbage") == []


class TestGroupNormas:
    def test_scenario_b_highest_classification_wins(self, api_client, make_evidence, make_norma):
        a = make_evidence("Tablero abierto")
        make_evidence("Tablero abierto")
        norma = make_norma("Tablero sin tapa", categoria="1. Tableros")
        key = a.group_key

        resp = api_client.post(
            _group_url(key, "/normas-repo"), json={"normaRepoId": norma.id, "clasificacion": "LEVE"}
        )
        assert resp.status_code == 201
        assert resp.json() == {"ok": True, "applied": 2, "failed": 0}

        api_client.post(
            f"/api/evidencias/{a.id}/normas-repo",
            json={"normaRepoId": norma.id, "clasificacion": "CRITICO"},
        )
        items = api_client.get(_group_url(key, "/normas-repo")).json()["items"]
        assert len(items) == 1
        assert items[0]["id"] == norma.id
        assert items[0]["clasificacion"] == "CRITICO"

    def test_group_listing_counts_distinct_normas(self, api_client, project, make_evidence, make_norma):
        a = make_evidence("Cableado")
        make_evidence("Cableado")
        n1 = make_norma("N1")
        n2 = make_norma("N2")
        api_client.post(_group_url(a.group_key, "/normas-repo"), json={"normaRepoId": n1.id})
        api_client.post(f"/api/evidencias/{a.id}/normas-repo", json={"normaRepoId": n2.id})

        groups = api_client.get(
            "/api/evidencias", params={"proyectoId": project.id, "group": "true"}
        ).json()["items"]
        assert groups[0]["normasCount"] == 2
        assert groups[0]["count"] == 2

    def test_attach_to_missing_group_or_norma(self, api_client, make_evidence):
        resp = api_client.post(_group_url("t0|cNo existe", "/normas-repo"), json={"normaRepoId": 1})
        assert resp.status_code == 404
        assert resp.json()["error"] == "Grupo no encontrado"

        evidence = make_evidence("Existe")
        resp = api_client.post(_group_url(evidence.group_key, "/normas-repo"), json={"normaRepoId": 999999})
        assert resp.status_code == 404
        assert resp.json()["error"] == "Norma de repositorio no encontrada"

    def test_empty_group_lists_no_normas(self, api_client):
        resp = api_client.get(_group_url("t0|cVacío", "/normas-repo"))
        assert resp.status_code == 200
        assert resp.json() == {"items": []}

    def test_scenario_d_detach_twice(self, api_client, db, make_evidence, make_norma):
        evidence = make_evidence("Detach")
        norma = make_norma("N")
        api_client.post(_group_url(evidence.group_key, "/normas-repo"), json={"normaRepoId": norma.id})

        url = _group_url(evidence.group_key, f"/normas-repo/{norma.id}")
        assert api_client.delete(url).status_code == 204
        assert api_client.delete(url).status_code == 204
        assert db.query(EvidenceNormaLink).filter_by(evidencia_id=evidence.id).count() == 0

    def test_detach_on_empty_group_is_404(self, api_client):
        assert api_client.delete(_group_url("t0|cNada", "/normas-repo/1")).status_code == 404


class TestGroupItemsAndDelete:
    def test_get_group_lists_members_oldest_first(self, api_client, task, make_evidence):
        first = make_evidence("Canaleta rota", tarea_id=task.id)
        second = make_evidence("Canaleta rota", tarea_id=task.id)
        resp = api_client.get(_group_url(first.group_key))
        assert resp.status_code == 200
        data = resp.json()
        assert data["groupKey"] == first.group_key
        assert [i["id"] for i in data["items"]] == [first.id, second.id]

    def test_comment_with_slash_resolves(self, api_client, make_evidence):
        evidence = make_evidence("Tubería 1/2 pulgada")
        resp = api_client.get(_group_url(evidence.group_key))
        assert resp.status_code == 200
        assert resp.json()["items"][0]["id"] == evidence.id

    def test_delete_group_then_404(self, api_client, db, make_evidence, make_norma):
        a = make_evidence("Borrar grupo")
        b = make_evidence("Borrar grupo")
        norma = make_norma("N")
        ids, key, norma_id = [a.id, b.id], a.group_key, norma.id
        api_client.post(_group_url(key, "/normas-repo"), json={"normaRepoId": norma_id})

        assert api_client.delete(_group_url(key)).status_code == 204
        db.expire_all()
        assert db.query(Evidence).filter(Evidence.id.in_(ids)).count() == 0
        assert db.query(EvidenceNormaLink).filter(EvidenceNormaLink.norma_repo_id == norma_id).count() == 0
        assert api_client.get(_group_url(key)).status_code == 404
        assert api_client.delete(_group_url(key)).status_code == 404


class TestBestEffortBatches:
    def test_attach_counts_failing_row_and_keeps_the_rest(self, api_client, db, make_evidence, make_norma):
        a = make_evidence("Lote parcial")
        b = make_evidence("Lote parcial")
        c = make_evidence("Lote parcial")
        norma = make_norma("Empalme expuesto")
        key, norma_id, failing_id = a.group_key, norma.id, b.id
        expected = {a.id, c.id}
        real_upsert = evidence_groups.upsert_link

        def flaky_upsert(session, evidence_id, *args, **kwargs):
            if evidence_id == failing_id:
                raise SQLAlchemyError("database is locked")
            return real_upsert(session, evidence_id, *args, **kwargs)

        with patch("gestion_proyectos.services.evidence_groups.upsert_link", side_effect=flaky_upsert):
            resp = api_client.post(_group_url(key, "/normas-repo"), json={"normaRepoId": norma_id})

        assert resp.status_code == 201
        assert resp.json() == {"ok": True, "applied": 2, "failed": 1}
        linked = {
            link.evidencia_id
            for link in db.query(EvidenceNormaLink).filter(EvidenceNormaLink.norma_repo_id == norma_id)
        }
        assert linked == expected

    def test_attach_result_lists_failed_rows(self, db, make_evidence, make_norma):
        evidence = make_evidence("Uno solo")
        norma = make_norma("Sin tapa")
        key, norma_id, evidence_id = evidence.group_key, norma.id, evidence.id

        with patch(
            "gestion_proyectos.services.evidence_groups.upsert_link",
            side_effect=SQLAlchemyError("boom"),
        ):
            result = evidence_groups.attach_norma_to_group(db, key, norma_id)

        assert result.applied == 0
        assert result.failed_items == [evidence_id]
        assert db.query(EvidenceNormaLink).filter(EvidenceNormaLink.evidencia_id == evidence_id).count() == 0

    def test_delete_group_survives_file_errors(self, api_client, db, make_evidence):
        a = make_evidence("Archivo bloqueado")
        b = make_evidence("Archivo bloqueado")
        key, ids = a.group_key, [a.id, b.id]

        with patch.object(storage, "remove_file", side_effect=OSError("busy")) as remove:
            resp = api_client.delete(_group_url(key))

        assert resp.status_code == 204
        assert remove.call_count == 2
        db.expire_all()
        assert db.query(Evidence).filter(Evidence.id.in_(ids)).count() == 0
        assert api_client.get(_group_url(key)).status_code == 404

    def test_delete_group_records_file_failures(self, db, make_evidence):
        evidence = make_evidence("Archivo en uso")
        key = evidence.group_key

        with patch.object(storage, "remove_file", side_effect=OSError("busy")):
            files = evidence_groups.delete_group(db, key)

        assert files.applied == 0
        assert files.failed == 1
        assert evidence_groups.resolve_group(db, key) == []
